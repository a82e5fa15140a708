from urllib.parse import quote

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from engmetrics.dependencies import get_workflow_labels
from engmetrics.jira.changelog import IssueMetrics, compute_metrics_batch
from engmetrics.jira.client import fetch_issues_with_changelog
from engmetrics.jira.export import export_metrics_csv
from engmetrics.jira.schemas import (
    DevelopmentMetricsResponse,
    IssueBatchRequest,
    IssueError,
    IssueMetricsListResponse,
    JiraSearchRequest,
)
from engmetrics.jira.timeline import WorkflowLabels

router = APIRouter(prefix="/jira", tags=["jira"])

# comma-separated, URL-quoted keys of issues exported as empty rows
SKIPPED_ISSUES_HEADER = "X-Skipped-Issues"


def _to_response(rows: list[IssueMetrics], errors: list[tuple[str, str]]) -> IssueMetricsListResponse:
    items = []
    for row in rows:
        m = row.metrics
        items.append(DevelopmentMetricsResponse(
            key=row.key,
            status=row.status,
            assignee=row.assignee,
            project_key=row.project_key,
            created_at=m.created_at,
            first_open_at=m.first_open_at,
            first_in_progress_at=m.first_in_progress_at,
            closed_at=m.closed_at,
            time_to_start=m.time_to_start,
            development_time=m.development_time,
            total_lead_time=m.total_lead_time,
        ))
    return IssueMetricsListResponse(
        items=items,
        errors=[IssueError(issue_key=key, error=message) for key, message in errors],
    )


@router.post("/metrics", response_model=IssueMetricsListResponse)
async def development_metrics(
    data: IssueBatchRequest,
    labels: WorkflowLabels = Depends(get_workflow_labels),
):
    rows, errors = compute_metrics_batch(data.issues, labels)
    return _to_response(rows, errors)


@router.post("/metrics/export")
async def export_development_metrics(
    data: IssueBatchRequest,
    labels: WorkflowLabels = Depends(get_workflow_labels),
):
    rows, errors = compute_metrics_batch(data.issues, labels)
    skipped = [key for key, _ in errors]
    headers = {"Content-Disposition": "attachment; filename=stories.csv"}
    if skipped:
        headers[SKIPPED_ISSUES_HEADER] = ",".join(quote(key, safe="") for key in skipped)
    return Response(
        content=export_metrics_csv(rows, skipped),
        media_type="text/csv",
        headers=headers,
    )


@router.post("/metrics/search", response_model=IssueMetricsListResponse)
async def search_development_metrics(
    data: JiraSearchRequest,
    labels: WorkflowLabels = Depends(get_workflow_labels),
):
    """Fetch issues matching the JQL from Jira and compute their metrics."""
    issues = await fetch_issues_with_changelog(data.jql, max_issues=data.max_issues)
    rows, errors = compute_metrics_batch(issues, labels)
    return _to_response(rows, errors)
