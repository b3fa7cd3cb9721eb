"""Tests for schema validation."""

import pytest

from prfeedback.lib.types import BeadCandidate
from prfeedback.lib.validate import (
    ValidationError,
    is_valid,
    validate,
    validate_before_handoff,
    validate_snapshot,
)


def make_bead(**overrides):
    values = dict(
        title="Fix lint in CI",
        description="desc",
        type="bug",
        priority=1,
        labels=["lint-issue", "from-pr-feedback"],
        metadata={"workflow": "CI"},
    )
    values.update(overrides)
    return BeadCandidate(**values)


class TestValidateSnapshot:
    """Tests for pr_snapshot schema validation."""

    def test_valid_snapshot(self):
        validate_snapshot({
            "state": "OPEN",
            "mergeableState": None,
            "checks": [{"context": "ci", "state": "SUCCESS"}],
            "reviews": [{"state": "APPROVED", "author": {"login": "alice"}, "comments": []}],
            "comments": [{"id": 1, "body": "hi"}],
            "workflows": [{"id": 1, "jobs": [{"id": 2, "steps": [{"name": "x"}]}]}],
        })

    def test_missing_state(self):
        with pytest.raises(ValidationError) as exc:
            validate_snapshot({"checks": []})
        assert exc.value.schema_name == "pr_snapshot"
        assert exc.value.path == "(root)"

    def test_reports_path(self):
        with pytest.raises(ValidationError) as exc:
            validate_snapshot({"state": "OPEN", "comments": [{"id": 1}]})
        assert exc.value.path == "comments.0"

    def test_unknown_schema(self):
        with pytest.raises(ValidationError, match="Schema file not found"):
            validate({}, "nope")


class TestValidateBeads:
    """Tests for bead validation before hand-off."""

    def test_valid_beads_become_dicts(self):
        result = validate_before_handoff([make_bead(), make_bead(title="Other", type="task")])
        assert [d["title"] for d in result] == ["Fix lint in CI", "Other"]

    def test_priority_out_of_range(self):
        with pytest.raises(ValidationError, match="invalid bead #1"):
            validate_before_handoff([make_bead(), make_bead(priority=7)])

    def test_empty_title(self):
        assert not is_valid({
            "title": "",
            "description": "",
            "type": "bug",
            "priority": 1,
            "labels": [],
            "metadata": {},
        }, "bead")

    def test_metadata_values_must_be_strings(self):
        with pytest.raises(ValidationError) as exc:
            validate_before_handoff([make_bead(metadata={"line": 12})])
        assert exc.value.path == "metadata.line"

    def test_counts_additional_violations(self):
        bad = {
            "title": "",
            "description": "",
            "type": "epic-ish",
            "priority": 9,
            "labels": [],
            "metadata": {},
        }
        with pytest.raises(ValidationError, match=r"and 2 more"):
            validate(bad, "bead")
