from engmetrics.config import settings
from engmetrics.jira.timeline import WorkflowLabels


def get_workflow_labels() -> WorkflowLabels:
    """Status vocabulary for timeline reduction, overridable in tests."""
    return settings.workflow_labels()
