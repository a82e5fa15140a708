from pydantic import model_validator
from pydantic_settings import BaseSettings

from engmetrics.jira.timeline import WorkflowLabels


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./engmetrics.db"

    # Jira REST API (changelog search)
    JIRA_SITE_URL: str = ""
    JIRA_USER_EMAIL: str = ""
    JIRA_API_TOKEN: str = ""
    JIRA_PAGE_SIZE: int = 100
    JIRA_MAX_ISSUES: int = 1000
    JIRA_TIMEOUT_SECONDS: float = 30.0

    # Status names of the tracked workflow; override per Jira instance
    WORKFLOW_OPEN_STATUS: str = "Open"
    WORKFLOW_IN_PROGRESS_STATUS: str = "In Progress"
    WORKFLOW_TERMINAL_STATUSES: list[str] = ["Closed", "Resolved", "Done"]

    CORS_ORIGINS: str = "http://localhost:5173"

    model_config = {"env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _fix_database_url(self):
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if self.DATABASE_URL.startswith("postgresql://"):
            self.DATABASE_URL = self.DATABASE_URL.replace(
                "postgresql://", "postgresql+asyncpg://", 1,
            )
        return self

    def workflow_labels(self) -> WorkflowLabels:
        return WorkflowLabels(
            open_label=self.WORKFLOW_OPEN_STATUS,
            in_progress_label=self.WORKFLOW_IN_PROGRESS_STATUS,
            terminal_labels=frozenset(self.WORKFLOW_TERMINAL_STATUSES),
        )


settings = Settings()
