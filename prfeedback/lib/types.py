"""
Shared data types for PR feedback processing.

This module contains dataclasses used across multiple modules to avoid
circular imports.
"""

from dataclasses import dataclass, field

from prfeedback.lib.constants import (
    SOURCE_CI,
    SOURCE_ISSUE_COMMENT,
    SOURCE_REVIEW_COMMENT,
    SOURCE_WORKFLOW,
)


@dataclass
class SourceInfo:
    """Where a piece of feedback came from."""
    type: str  # "ci", "workflow", "review_comment", "issue_comment"
    id: str  # Check name, workflow run/job ID, or comment ID
    name: str  # Check name, workflow name, or author login
    url: str = ""


@dataclass
class CICheckContext:
    """Context for a failed status check."""
    check_name: str
    state: str  # e.g. "FAILURE", "ERROR"


@dataclass
class WorkflowContext:
    """Context for a failed workflow run."""
    workflow_name: str
    failure_detail: str
    run_id: int
    job_name: str = ""
    step_name: str = ""


@dataclass
class ReviewContext:
    """Context for a review or a line comment inside a review."""
    reviewer: str
    comment_id: int
    file: str = ""
    line: int = 0
    in_reply_to_id: int = 0  # 0 if not a reply


@dataclass
class IssueCommentContext:
    """Context for a general PR comment."""
    author: str
    comment_id: int


@dataclass
class FeedbackItem:
    """A single piece of PR feedback that could become a bead.

    Exactly one of the context fields is set, matching source.type.
    """
    type: str
    title: str
    description: str
    source: SourceInfo
    priority: int  # 0-4, 0 = critical
    actionable: bool = True
    ci_check: CICheckContext | None = None
    workflow: WorkflowContext | None = None
    review: ReviewContext | None = None
    issue_comment: IssueCommentContext | None = None

    def source_label(self) -> str:
        """Human-readable source, e.g. "CI: test-suite"."""
        prefix = {
            SOURCE_CI: "CI",
            SOURCE_WORKFLOW: "Workflow",
            SOURCE_REVIEW_COMMENT: "Review",
            SOURCE_ISSUE_COMMENT: "Comment",
        }.get(self.source.type)
        if prefix:
            return f"{prefix}: {self.source.name}"
        return self.source.name

    def in_reply_to_id(self) -> str:
        """ID of the parent comment if this is a reply, else ""."""
        if self.review and self.review.in_reply_to_id:
            return str(self.review.in_reply_to_id)
        return ""

    def context_map(self) -> dict[str, str]:
        """Flatten the typed context into string metadata."""
        ctx = {"source_id": self.source.id}

        if self.ci_check:
            ctx["check_name"] = self.ci_check.check_name
            ctx["state"] = self.ci_check.state
        elif self.workflow:
            ctx["workflow"] = self.workflow.workflow_name
            ctx["failure"] = self.workflow.failure_detail
            ctx["run_id"] = str(self.workflow.run_id)
            if self.workflow.job_name:
                ctx["job_name"] = self.workflow.job_name
            if self.workflow.step_name:
                ctx["step_name"] = self.workflow.step_name
        elif self.review:
            if self.review.file:
                ctx["file"] = self.review.file
            if self.review.line:
                ctx["line"] = str(self.review.line)
            ctx["reviewer"] = self.review.reviewer
            ctx["comment_id"] = str(self.review.comment_id)
            if self.review.in_reply_to_id:
                ctx["in_reply_to_id"] = str(self.review.in_reply_to_id)
        elif self.issue_comment:
            ctx["author"] = self.issue_comment.author
            ctx["comment_id"] = str(self.issue_comment.comment_id)

        return ctx


@dataclass
class BeadCandidate:
    """Everything the issue tracker needs to create one bead."""
    title: str
    description: str
    type: str  # "bug" or "task"
    priority: int
    parent_id: str = ""
    labels: list[str] = field(default_factory=list)
    metadata: dict[str, str] = field(default_factory=dict)
