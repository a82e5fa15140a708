from datetime import datetime

from pydantic import BaseModel, Field


class IssueBatchRequest(BaseModel):
    # raw Jira issue resources, fetched with expand=changelog
    issues: list[dict]


class JiraSearchRequest(BaseModel):
    jql: str = Field(min_length=1)
    max_issues: int | None = Field(None, ge=1, le=10000)


class DevelopmentMetricsResponse(BaseModel):
    key: str
    status: str
    assignee: str
    project_key: str
    created_at: datetime
    first_open_at: datetime | None
    first_in_progress_at: datetime | None
    closed_at: datetime | None
    time_to_start: int | None
    development_time: int | None
    total_lead_time: int | None


class IssueError(BaseModel):
    issue_key: str
    error: str


class IssueMetricsListResponse(BaseModel):
    items: list[DevelopmentMetricsResponse]
    errors: list[IssueError]
