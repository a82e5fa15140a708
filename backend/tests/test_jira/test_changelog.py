import csv
import io
from datetime import datetime, timedelta, timezone

import pytest

from engmetrics.exceptions import ParseError
from engmetrics.jira.changelog import (
    compute_issue_metrics,
    compute_metrics_batch,
    history_from_changelog,
    parse_jira_timestamp,
)
from engmetrics.jira.export import CSV_HEADER, export_metrics_csv
from engmetrics.jira.timeline import WorkflowLabels

LABELS = WorkflowLabels()


def make_issue(key="ENG-1", created="2024-03-01T09:00:00.000+0000", histories=None, **fields):
    return {
        "key": key,
        "fields": {
            "created": created,
            "status": {"id": "6", "name": "Closed"},
            "assignee": {"name": "dev1"},
            "priority": {"name": "Major"},
            "project": {"key": "ENG"},
            "customfield_10002": 3,
            "resolutiondate": "2024-03-02T14:00:00.000+0000",
            **fields,
        },
        "changelog": {"histories": histories if histories is not None else [
            {"created": "2024-03-01T10:00:00.000+0000", "items": [
                {"field": "status", "fromString": "New", "toString": "Open"},
            ]},
            {"created": "2024-03-02T14:00:00.000+0000", "items": [
                {"field": "status", "fromString": "In Progress", "toString": "Closed"},
            ]},
            {"created": "2024-03-01T14:00:00.000+0000", "items": [
                {"field": "status", "fromString": "Open", "toString": "In Progress"},
            ]},
        ]},
    }


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-03-01T09:00:00.000+0000", datetime(2024, 3, 1, 9, tzinfo=timezone.utc)),
        ("2024-03-01T11:00:00.000+0200", datetime(2024, 3, 1, 9, tzinfo=timezone.utc)),
        ("2024-03-01T09:00:00Z", datetime(2024, 3, 1, 9, tzinfo=timezone.utc)),
        ("2024-03-01T09:00:00", datetime(2024, 3, 1, 9, tzinfo=timezone.utc)),
    ],
)
def test_parse_jira_timestamp(value, expected):
    assert parse_jira_timestamp(value) == expected


@pytest.mark.parametrize("value", ["", None, "yesterday", "2024-13-45T99:00:00.000+0000", 42])
def test_parse_jira_timestamp_rejects_garbage(value):
    with pytest.raises(ParseError):
        parse_jira_timestamp(value)


def test_history_from_changelog_maps_items():
    entries = history_from_changelog({"histories": [
        {"created": "2024-03-01T10:00:00.000+0000", "items": [
            {"field": "status", "fromString": "New", "toString": "Open"},
            {"field": "assignee", "fromString": None, "toString": "dev1"},
        ]},
    ]})
    assert len(entries) == 1
    assert [(c.field, c.to_value) for c in entries[0].items] == [("status", "Open"), ("assignee", "dev1")]


def test_history_from_missing_changelog():
    assert history_from_changelog(None) == []
    assert history_from_changelog({"histories": None}) == []


def test_compute_issue_metrics_sorts_histories():
    row = compute_issue_metrics(make_issue(), LABELS)
    m = row.metrics
    assert row.key == "ENG-1"
    assert row.assignee == "dev1"
    assert row.project_key == "ENG"
    assert row.story_points == "3"
    assert m.time_to_start == 5
    assert m.development_time == 24
    assert m.total_lead_time == 29


def test_compute_issue_metrics_without_changelog():
    issue = make_issue(histories=[])
    row = compute_issue_metrics(issue, LABELS)
    assert row.metrics.created_at == datetime(2024, 3, 1, 9, tzinfo=timezone.utc)
    assert row.metrics.first_open_at is None
    assert row.metrics.total_lead_time is None


def test_compute_issue_metrics_bad_history_timestamp():
    issue = make_issue(histories=[{"created": "not-a-date", "items": []}])
    with pytest.raises(ParseError):
        compute_issue_metrics(issue, LABELS)


def test_batch_skips_unparsable_issue():
    issues = [
        make_issue("ENG-1"),
        make_issue("ENG-2", created="garbage"),
        make_issue("ENG-3", histories=[]),
    ]
    rows, errors = compute_metrics_batch(issues, LABELS)
    assert [r.key for r in rows] == ["ENG-1", "ENG-3"]
    assert len(errors) == 1
    assert errors[0][0] == "ENG-2"
    assert "garbage" in errors[0][1]


def test_export_csv_leaves_absent_values_empty():
    rows, _ = compute_metrics_batch([make_issue("ENG-1"), make_issue("ENG-3", histories=[])], LABELS)
    reader = csv.reader(io.StringIO(export_metrics_csv(rows)))
    header, full, bare = list(reader)
    assert header == CSV_HEADER
    record = dict(zip(header, full))
    assert record["Total Lead Time (hrs)"] == "29"
    assert record["Time to Start (hrs)"] == "5"
    assert record["Created Month"] == "MAR"
    assert record["Year"] == "2024"
    assert record["Closed Date"] == (datetime(2024, 3, 1, 9, tzinfo=timezone.utc) + timedelta(hours=29)).isoformat()

    record = dict(zip(header, bare))
    for column in ("Total Lead Time (hrs)", "Time to Start (hrs)", "Development Time (hrs)",
                   "First Open Date", "First In Progress Date", "Closed Date"):
        assert record[column] == ""


@pytest.mark.parametrize(
    "bad_issue",
    [
        {"key": "BAD-1", "fields": {"created": "2024-03-01T09:00:00.000+0000", "status": "Open"}},
        {"key": "BAD-2", "fields": "not-an-object"},
        {"key": "BAD-3", "fields": {"created": "2024-03-01T09:00:00.000+0000"}, "changelog": {"histories": ["oops"]}},
        {"key": "BAD-4", "fields": {"created": "2024-03-01T09:00:00.000+0000"},
         "changelog": {"histories": [{"created": "2024-03-01T10:00:00.000+0000", "items": ["status"]}]}},
        {"key": "BAD-5", "fields": {"created": "2024-03-01T09:00:00.000+0000"}, "changelog": {"histories": {}}},
    ],
)
def test_batch_skips_malformed_issue(bad_issue):
    rows, errors = compute_metrics_batch([make_issue("ENG-1"), bad_issue, make_issue("ENG-3")], LABELS)
    assert [r.key for r in rows] == ["ENG-1", "ENG-3"]
    assert [key for key, _ in errors] == [bad_issue["key"]]
    assert errors[0][1].startswith("Malformed")


def test_batch_skips_non_object_issue():
    rows, errors = compute_metrics_batch([make_issue("ENG-1"), "ENG-2"], LABELS)
    assert [r.key for r in rows] == ["ENG-1"]
    assert errors == [("", "Malformed issue: expected an object, got str")]


def test_export_uses_status_id_and_lists_skipped_issues():
    rows, _ = compute_metrics_batch([make_issue("ENG-1")], LABELS)
    reader = csv.reader(io.StringIO(export_metrics_csv(rows, ["ENG-2"])))
    header, full, skipped = list(reader)
    assert header[1] == "Status Id"
    assert full[1] == "6"
    assert skipped[0] == "ENG-2"
    assert skipped[1:] == [""] * (len(CSV_HEADER) - 1)
