"""Tests for building PR snapshots from GitHub JSON."""

from datetime import datetime, timezone

from prfeedback.lib.snapshot import PRSnapshot, parse_timestamp, snapshot_from_dict
from prfeedback.lib.status import extract_status


GH_SNAPSHOT = {
    "url": "https://github.com/acme/widget/pull/7",
    "state": "OPEN",
    "mergeStateStatus": "DIRTY",
    "statusCheckRollup": [
        {"name": "unit-tests", "conclusion": "failure", "detailsUrl": "https://ci/1"},
        {"context": "coverage", "state": "SUCCESS", "targetUrl": "https://ci/2"},
    ],
    "reviews": [
        {
            "id": 5,
            "state": "APPROVED",
            "author": {"login": "alice"},
            "submittedAt": "2026-01-20T12:00:00Z",
            "comments": [
                {"id": 11, "path": "a.go", "line": None, "originalLine": 30, "body": "nit: rename", "author": {"login": "alice"}},
            ],
        },
    ],
    "comments": [
        {"id": 77, "body": "Please add docs", "author": {"login": "carol"}, "createdAt": "2026-01-20T13:00:00Z"},
    ],
    "workflows": [
        {
            "databaseId": 9000,
            "workflowName": "CI",
            "status": "COMPLETED",
            "conclusion": "FAILURE",
            "jobs": [
                {"databaseId": 101, "name": "test", "conclusion": "failure", "steps": [
                    {"name": "Run tests", "conclusion": "failure"},
                ]},
            ],
        },
    ],
}


class TestParseTimestamp:
    """Tests for parse_timestamp()."""

    def test_github_format(self):
        assert parse_timestamp("2026-01-20T12:00:00Z") == datetime(2026, 1, 20, 12, tzinfo=timezone.utc)

    def test_seven_fraction_digits(self):
        result = parse_timestamp("2026-01-26T14:49:40.7760945Z")
        assert result.microsecond == 776094
        assert result.tzinfo is not None

    def test_naive_datetime_assumed_utc(self):
        assert parse_timestamp(datetime(2026, 1, 1)).tzinfo == timezone.utc

    def test_garbage(self):
        assert parse_timestamp("yesterday") is None
        assert parse_timestamp("") is None
        assert parse_timestamp(12345) is None
        assert parse_timestamp(None) is None


class TestSnapshotFromDict:
    """Tests for snapshot_from_dict()."""

    def test_github_shapes(self):
        snapshot = snapshot_from_dict(GH_SNAPSHOT)

        assert snapshot.state == "OPEN"
        assert snapshot.mergeable_state == "DIRTY"
        assert [(c.context, c.state) for c in snapshot.checks] == [
            ("unit-tests", "FAILURE"),
            ("coverage", "SUCCESS"),
        ]
        assert snapshot.checks[0].url == "https://ci/1"

        review = snapshot.reviews[0]
        assert review.author == "alice"
        assert review.created_at == datetime(2026, 1, 20, 12, tzinfo=timezone.utc)
        assert review.comments[0].line == 0
        assert review.comments[0].original_line == 30

        assert snapshot.comments[0].author == "carol"

        workflow = snapshot.workflows[0]
        assert workflow.id == 9000
        assert workflow.name == "CI"
        assert workflow.conclusion == "failure"
        assert workflow.jobs[0].id == 101
        assert workflow.jobs[0].steps[0].conclusion == "failure"

    def test_feeds_status_extraction(self):
        info = extract_status(snapshot_from_dict(GH_SNAPSHOT))
        assert info.ci_status == "failure"
        assert info.approval_status == "approved"
        assert info.approvers == ["alice"]
        assert info.pr_state == "open"

    def test_missing_fields(self):
        assert snapshot_from_dict({}) == PRSnapshot()

    def test_mistyped_fields(self):
        snapshot = snapshot_from_dict({
            "state": "OPEN",
            "checks": "not a list",
            "reviews": [None, 3, {"state": "approved", "id": "abc"}],
        })
        assert snapshot.checks == []
        assert len(snapshot.reviews) == 1
        assert snapshot.reviews[0].state == "APPROVED"
        assert snapshot.reviews[0].id == 0

    def test_non_dict(self):
        assert snapshot_from_dict(None) == PRSnapshot()
        assert snapshot_from_dict(["x"]) == PRSnapshot()
