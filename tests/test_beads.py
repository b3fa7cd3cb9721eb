"""Tests for bead candidate construction and deduplication."""

import pytest

from prfeedback.lib.beads import (
    bead_to_dict,
    build_bead_candidates,
    dedup_key,
    deduplicate_beads,
    external_ref,
    feedback_to_bead,
    format_description,
    group_beads_by_type,
    labels_for,
    normalize_title,
    prioritize_beads,
)
from prfeedback.lib.types import (
    BeadCandidate,
    CICheckContext,
    FeedbackItem,
    IssueCommentContext,
    ReviewContext,
    SourceInfo,
    WorkflowContext,
)


def workflow_item(title="Fix test: Run tests in CI", priority=2, feedback_type="test_failure"):
    return FeedbackItem(
        type=feedback_type,
        title=title,
        description="Workflow 'CI' failed at: test: Run tests",
        source=SourceInfo(type="workflow", id="101", name="CI", url="https://github.com/acme/widget/actions/runs/9"),
        priority=priority,
        workflow=WorkflowContext(
            workflow_name="CI",
            failure_detail="test: Run tests",
            run_id=9,
            job_name="test",
            step_name="Run tests",
        ),
    )


def review_item(comment_id=11, path="pkg/a.go", line=12, title=None):
    return FeedbackItem(
        type="review_comment",
        title=title or f"Fix issue in {path} (line {line})",
        description="This leaks a goroutine",
        source=SourceInfo(type="review_comment", id=str(comment_id), name="bob"),
        priority=2,
        review=ReviewContext(reviewer="bob", comment_id=comment_id, file=path, line=line),
    )


def bead(title, priority=2, bead_type="task", **metadata):
    return BeadCandidate(
        title=title,
        description="",
        type=bead_type,
        priority=priority,
        metadata=metadata,
    )


class TestFeedbackToBead:
    """Tests for feedback_to_bead()."""

    def test_workflow_item(self):
        result = feedback_to_bead(workflow_item(), parent_id="bd-42")

        assert result.title == "Fix test: Run tests in CI"
        assert result.type == "bug"
        assert result.priority == 2
        assert result.parent_id == "bd-42"
        assert result.labels == ["test-failure", "from-pr-feedback"]
        assert result.metadata["workflow"] == "CI"
        assert result.metadata["run_id"] == "9"
        assert result.metadata["source_type"] == "workflow"
        assert result.metadata["source_id"] == "101"
        assert result.metadata["feedback_type"] == "test_failure"

    def test_review_item_is_task(self):
        result = feedback_to_bead(review_item())
        assert result.type == "task"
        assert result.metadata["file"] == "pkg/a.go"
        assert result.metadata["line"] == "12"
        assert result.metadata["reviewer"] == "bob"

    def test_comment_item(self):
        item = FeedbackItem(
            type="general",
            title="Please update docs",
            description="Please update docs",
            source=SourceInfo(type="issue_comment", id="77", name="carol"),
            priority=3,
            issue_comment=IssueCommentContext(author="carol", comment_id=77),
        )
        result = feedback_to_bead(item)
        assert result.labels == ["from-pr-feedback"]
        assert result.metadata["author"] == "carol"
        assert result.metadata["comment_id"] == "77"

    def test_description_sections(self):
        text = format_description(workflow_item())

        assert text.startswith("Workflow 'CI' failed at: test: Run tests\n")
        assert "## Source" in text
        assert "- **GitHub Link**: https://github.com/acme/widget/actions/runs/9" in text
        assert "## Context" in text
        assert "- Workflow: CI" in text
        assert "- Step Name: Run tests" in text
        assert "Source Id" not in text
        assert "## Resolution\nFix the failing tests" in text

    def test_labels_for_unknown_type(self):
        assert labels_for("general") == ["from-pr-feedback"]
        assert labels_for("merge_conflict") == ["merge-conflict", "from-pr-feedback"]


class TestExternalRef:
    """Tests for external_ref() and its use in bead metadata."""

    @pytest.mark.parametrize("url,expected", [
        ("https://github.com/acme/widget/pull/7#discussion_r789", "gh-review-comment-789"),
        ("https://github.com/acme/widget/pull/7#issuecomment-456789", "gh-comment-456789"),
        ("https://github.com/acme/widget/pull/123", "gh-pr-123"),
        ("https://github.com/acme/widget/issues/42", "gh-issue-42"),
        ("https://github.com/acme/widget/actions/runs/9/", "gh-9"),
        ("", ""),
    ])
    def test_reference_forms(self, url, expected):
        assert external_ref(url) == expected

    def test_too_long_is_dropped(self):
        assert external_ref("https://example.com/" + "x" * 200) == ""

    def test_comment_bead_carries_reference(self):
        item = FeedbackItem(
            type="review_comment",
            title="Fix issue in a.go (line 3)",
            description="",
            source=SourceInfo(
                type="review_comment",
                id="789",
                name="bob",
                url="https://github.com/acme/widget/pull/7#discussion_r789",
            ),
            priority=2,
            review=ReviewContext(reviewer="bob", comment_id=789, file="a.go", line=3),
        )
        assert feedback_to_bead(item).metadata["external_ref"] == "gh-review-comment-789"

    def test_no_url_no_reference(self):
        assert "external_ref" not in feedback_to_bead(review_item()).metadata


class TestDedupKey:
    """Tests for normalize_title() and dedup_key()."""

    def test_normalize_title_strips_one_prefix(self):
        assert normalize_title("Fix the tests") == "the tests"
        assert normalize_title("Resolve merge conflicts") == "merge conflicts"
        assert normalize_title("Fix address parsing") == "address parsing"
        assert normalize_title("Update deps") == "update deps"

    def test_file_key_keeps_title(self):
        b = bead("Fix issue in a.go (line 3)", file="a.go")
        assert dedup_key(b) == "task:a.go:issue in a.go (line 3)"

    def test_workflow_key_ignores_title(self):
        assert dedup_key(bead("Fix one", workflow="CI")) == dedup_key(bead("Fix two", workflow="CI"))
        assert dedup_key(bead("x", workflow="CI")) == "task:workflow:CI"

    def test_check_key(self):
        assert dedup_key(bead("x", check_name="lint")) == "task:check:lint"

    def test_title_key(self):
        assert dedup_key(bead("Fix Typo")) == dedup_key(bead("typo"))

    def test_type_is_part_of_key(self):
        assert dedup_key(bead("x", bead_type="bug", workflow="CI")) != dedup_key(bead("x", workflow="CI"))


class TestDeduplicateBeads:
    """Tests for deduplicate_beads()."""

    def test_lower_priority_value_survives(self):
        first = bead("Fix lint in CI", priority=3, workflow="CI")
        second = bead("fix lint in CI", priority=0, workflow="CI")
        assert deduplicate_beads([first, second]) == [second]

    def test_higher_priority_value_does_not_replace(self):
        first = bead("Fix lint", priority=1, workflow="CI")
        second = bead("Fix lint", priority=3, workflow="CI")
        assert deduplicate_beads([first, second]) == [first]

    def test_replacement_keeps_position(self):
        a = bead("a", priority=3, workflow="CI")
        b = bead("b", priority=2, check_name="lint")
        c = bead("c", priority=0, workflow="CI")
        assert deduplicate_beads([a, b, c]) == [c, b]

    def test_distinct_files_kept(self):
        beads = [
            bead("Fix issue in a.go (line 1)", file="a.go"),
            bead("Fix issue in b.go (line 1)", file="b.go"),
        ]
        assert len(deduplicate_beads(beads)) == 2

    def test_empty(self):
        assert deduplicate_beads([]) == []


class TestBeadHelpers:
    """Tests for building, grouping and sorting bead candidates."""

    def test_build_bead_candidates_dedups(self):
        items = [
            workflow_item(title="Fix test: Run tests in CI", priority=2),
            workflow_item(title="Fix test: Run tests in CI", priority=1),
            review_item(),
        ]
        beads = build_bead_candidates(items, parent_id="bd-1")

        assert len(beads) == 2
        assert beads[0].priority == 1
        assert all(b.parent_id == "bd-1" for b in beads)

    def test_group_by_type(self):
        beads = [bead("a", bead_type="bug"), bead("b"), bead("c", bead_type="bug")]
        grouped = group_beads_by_type(beads)
        assert [b.title for b in grouped["bug"]] == ["a", "c"]
        assert [b.title for b in grouped["task"]] == ["b"]

    def test_prioritize_is_stable(self):
        beads = [bead("x", priority=2), bead("y", priority=0), bead("z", priority=2)]
        assert [b.title for b in prioritize_beads(beads)] == ["y", "x", "z"]
        assert [b.title for b in beads] == ["x", "y", "z"]

    def test_bead_to_dict(self):
        data = bead_to_dict(feedback_to_bead(review_item(), parent_id="bd-7"))
        assert set(data) == {"title", "description", "type", "priority", "parent_id", "labels", "metadata"}
        assert data["parent_id"] == "bd-7"
        assert data["labels"] == ["review-feedback", "from-pr-feedback"]


class TestCICheckBead:
    """Tests for beads from failed checks."""

    def test_check_metadata(self):
        item = FeedbackItem(
            type="ci_failure",
            title="Fix deploy failure",
            description="",
            source=SourceInfo(type="ci", id="deploy", name="deploy"),
            priority=1,
            ci_check=CICheckContext(check_name="deploy", state="ERROR"),
        )
        result = feedback_to_bead(item)
        assert result.type == "bug"
        assert result.metadata["check_name"] == "deploy"
        assert result.metadata["state"] == "ERROR"
        assert dedup_key(result) == "bug:check:deploy"
