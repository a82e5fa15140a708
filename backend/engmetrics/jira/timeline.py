"""Reduce an issue's status-change history into development milestones.

Milestones are the first transition into the open status, the first
transition into the in-progress status and the first transition into any
terminal status. Durations between them are reported in whole hours.

The first terminal transition is kept even when the issue is later reopened
and closed again, so development time for reopened issues only covers the
first in-progress/closed pair.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

STATUS_FIELD = "status"

_MICROSECONDS_PER_HOUR = 3600 * 1_000_000


@dataclass(frozen=True)
class WorkflowLabels:
    """Status names that mark each milestone in a given workflow."""

    open_label: str = "Open"
    in_progress_label: str = "In Progress"
    terminal_labels: frozenset[str] = frozenset({"Closed", "Resolved", "Done"})


@dataclass(frozen=True)
class FieldChange:
    field: str
    from_value: str | None = None
    to_value: str | None = None


@dataclass(frozen=True)
class HistoryEntry:
    timestamp: datetime
    items: tuple[FieldChange, ...] = ()


@dataclass(frozen=True)
class DevelopmentMetrics:
    created_at: datetime
    first_open_at: datetime | None = None
    first_in_progress_at: datetime | None = None
    closed_at: datetime | None = None
    time_to_start: int | None = None
    development_time: int | None = None
    total_lead_time: int | None = None


class Milestone(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


def next_milestone(status: str, labels: WorkflowLabels, recorded: set[Milestone]) -> Milestone | None:
    """Return the milestone a transition into ``status`` records, if any.

    Each branch checks its own category, so when labels overlap a status
    whose first category is already recorded falls through to the next one.
    """
    if status == labels.open_label and Milestone.OPEN not in recorded:
        return Milestone.OPEN
    if status == labels.in_progress_label and Milestone.IN_PROGRESS not in recorded:
        return Milestone.IN_PROGRESS
    if status in labels.terminal_labels and Milestone.CLOSED not in recorded:
        return Milestone.CLOSED
    return None


def floor_hours(delta: timedelta) -> int:
    """Whole hours in ``delta``, truncated toward zero."""
    micros = (delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds
    hours = abs(micros) // _MICROSECONDS_PER_HOUR
    return hours if micros >= 0 else -hours


def _hours_between(start: datetime | None, end: datetime | None) -> int | None:
    if start is None or end is None:
        return None
    return floor_hours(end - start)


def reduce_timeline(
    created_at: datetime,
    events: Iterable[HistoryEntry],
    labels: WorkflowLabels = WorkflowLabels(),
) -> DevelopmentMetrics:
    """Fold status-change events into milestone timestamps and durations.

    Events are stable-sorted by timestamp first, so callers may pass them in
    any order. Fields without both endpoints are left as None.
    """
    milestones: dict[Milestone, datetime] = {}

    for event in sorted(events, key=lambda e: e.timestamp):
        for item in event.items:
            if item.field != STATUS_FIELD or not item.to_value:
                continue
            milestone = next_milestone(item.to_value, labels, set(milestones))
            if milestone is not None:
                milestones[milestone] = event.timestamp

    first_open_at = milestones.get(Milestone.OPEN)
    first_in_progress_at = milestones.get(Milestone.IN_PROGRESS)
    closed_at = milestones.get(Milestone.CLOSED)

    return DevelopmentMetrics(
        created_at=created_at,
        first_open_at=first_open_at,
        first_in_progress_at=first_in_progress_at,
        closed_at=closed_at,
        time_to_start=_hours_between(created_at, first_in_progress_at),
        development_time=_hours_between(first_in_progress_at, closed_at),
        total_lead_time=_hours_between(created_at, closed_at),
    )
