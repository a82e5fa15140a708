"""Turn raw Jira issue payloads (``expand=changelog``) into development metrics."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog

from engmetrics.exceptions import ParseError
from engmetrics.jira.timeline import (
    DevelopmentMetrics,
    FieldChange,
    HistoryEntry,
    WorkflowLabels,
    reduce_timeline,
)

logger = structlog.get_logger()

# Jira Server/Cloud REST v2 format, e.g. 2024-03-01T09:15:00.000+0000
JIRA_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"
STORY_POINTS_FIELD = "customfield_10002"


@dataclass(frozen=True)
class IssueMetrics:
    """One exportable row: issue attributes plus its development metrics."""

    key: str
    metrics: DevelopmentMetrics
    status: str = ""
    status_id: str = ""
    assignee: str = ""
    priority: str = ""
    project_key: str = ""
    story_points: str = ""
    due_date: str = ""
    updated: str = ""
    resolved_at: datetime | None = None


def parse_jira_timestamp(value) -> datetime:
    """Parse a Jira timestamp. Naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            parsed = datetime.strptime(text, JIRA_DATE_FORMAT)
        except ValueError:
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                raise ParseError(f"Unparsable timestamp: {value!r}") from None
    else:
        raise ParseError(f"Unparsable timestamp: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _mapping(value, what: str) -> dict:
    """Return ``value`` as a dict; absent is empty, any other shape is a ParseError."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ParseError(f"Malformed {what}: expected an object, got {type(value).__name__}")
    return value


def _sequence(value, what: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ParseError(f"Malformed {what}: expected a list, got {type(value).__name__}")
    return value


def history_from_changelog(changelog: dict | None) -> list[HistoryEntry]:
    """Convert ``changelog.histories`` into history entries, in source order."""
    entries: list[HistoryEntry] = []
    for history in _sequence(_mapping(changelog, "changelog").get("histories"), "changelog.histories"):
        history = _mapping(history, "changelog history")
        items = []
        for raw_item in _sequence(history.get("items"), "history items"):
            item = _mapping(raw_item, "changelog item")
            items.append(FieldChange(
                field=item.get("field") or "",
                from_value=item.get("fromString"),
                to_value=item.get("toString"),
            ))
        entries.append(HistoryEntry(timestamp=parse_jira_timestamp(history.get("created")), items=tuple(items)))
    return entries


def _name(obj, what: str, key: str = "name") -> str:
    return str(_mapping(obj, what).get(key) or "")


def compute_issue_metrics(issue: dict, labels: WorkflowLabels) -> IssueMetrics:
    """Compute metrics for one issue.

    Raises ParseError on bad timestamps or a payload that is not shaped like
    a Jira issue, so batch callers can skip just this issue.
    """
    issue = _mapping(issue, "issue")
    fields = _mapping(issue.get("fields"), "issue fields")
    created_at = parse_jira_timestamp(fields.get("created"))

    histories = history_from_changelog(issue.get("changelog"))
    if not histories:
        logger.debug("jira_issue_no_changelog", issue_key=issue.get("key"))
    metrics = reduce_timeline(created_at, histories, labels)

    resolution = fields.get("resolutiondate")
    story_points = fields.get(STORY_POINTS_FIELD)
    return IssueMetrics(
        key=str(issue.get("key") or ""),
        metrics=metrics,
        status=_name(fields.get("status"), "status"),
        status_id=_name(fields.get("status"), "status", "id"),
        assignee=_name(fields.get("assignee"), "assignee"),
        priority=_name(fields.get("priority"), "priority"),
        project_key=_name(fields.get("project"), "project", "key"),
        story_points="" if story_points is None else str(story_points),
        due_date=fields.get("duedate") or "",
        updated=fields.get("updated") or "",
        resolved_at=parse_jira_timestamp(resolution) if resolution else None,
    )


def compute_metrics_batch(
    issues: Iterable[dict],
    labels: WorkflowLabels,
) -> tuple[list[IssueMetrics], list[tuple[str, str]]]:
    """Compute metrics for every issue; a failing issue is skipped, not fatal.

    Returns ``(rows, errors)`` where errors are ``(issue_key, message)`` pairs.
    """
    rows: list[IssueMetrics] = []
    errors: list[tuple[str, str]] = []
    for issue in issues:
        key = str(issue.get("key") or "") if isinstance(issue, dict) else ""
        try:
            rows.append(compute_issue_metrics(issue, labels))
        except ParseError as e:
            logger.warning("jira_issue_skipped", issue_key=key, error=e.message)
            errors.append((key, e.message))

    logger.info("jira_metrics_computed", issues=len(rows), skipped=len(errors))
    return rows, errors
