"""Row-oriented CSV export of issue development metrics."""

import csv
import io
from collections.abc import Iterable
from datetime import datetime

from engmetrics.jira.changelog import IssueMetrics

CSV_HEADER = [
    "User Story Key",
    "Status Id",
    "Assignee",
    "Created",
    "Due Date",
    "Updated",
    "Story Points",
    "Project ID",
    "Priority",
    "Created Month",
    "Resolved Month",
    "Year",
    "Total Lead Time (hrs)",
    "Time to Start (hrs)",
    "Development Time (hrs)",
    "First Open Date",
    "First In Progress Date",
    "Closed Date",
]


def _cell(value) -> str:
    """Absent values become empty cells, never zero."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _month(value: datetime | None) -> str:
    return value.strftime("%b").upper() if value else ""


def metrics_to_row(row: IssueMetrics) -> list[str]:
    m = row.metrics
    return [
        row.key,
        row.status_id,
        row.assignee,
        _cell(m.created_at),
        row.due_date,
        row.updated,
        row.story_points,
        row.project_key,
        row.priority,
        _month(m.created_at),
        _month(row.resolved_at),
        _cell(row.resolved_at.year if row.resolved_at else None),
        _cell(m.total_lead_time),
        _cell(m.time_to_start),
        _cell(m.development_time),
        _cell(m.first_open_at),
        _cell(m.first_in_progress_at),
        _cell(m.closed_at),
    ]


def skipped_row(issue_key: str) -> list[str]:
    """Row for an issue that could not be parsed: key only, every metric cell empty."""
    return [issue_key] + [""] * (len(CSV_HEADER) - 1)


def export_metrics_csv(rows: Iterable[IssueMetrics], skipped_keys: Iterable[str] = ()) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(CSV_HEADER)
    for row in rows:
        writer.writerow(metrics_to_row(row))
    for key in skipped_keys:
        writer.writerow(skipped_row(key))
    return buf.getvalue()
