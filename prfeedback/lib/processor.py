"""
PR feedback processing.

Turns a PR snapshot into an ordered list of FeedbackItems: failed checks,
then failed workflow jobs, then reviews, then general comments, then merge
conflicts. Job logs are supplied by the caller; nothing here does I/O.
"""

import logging
from typing import Mapping

from prfeedback.lib import classify
from prfeedback.lib.config import FeedbackRules
from prfeedback.lib.constants import (
    CHECK_FAILURE_STATES,
    FEEDBACK_BUILD,
    FEEDBACK_CI,
    FEEDBACK_CONFLICT,
    FEEDBACK_LINT,
    FEEDBACK_REVIEW,
    FEEDBACK_TEST,
    MERGEABLE_STATE_DIRTY,
    REVIEW_CHANGES_REQUESTED,
    SOURCE_CI,
    SOURCE_ISSUE_COMMENT,
    SOURCE_REVIEW_COMMENT,
    SOURCE_WORKFLOW,
    WORKFLOW_FAILURE,
)
from prfeedback.lib.snapshot import Job, PRSnapshot, WorkflowRun
from prfeedback.lib.types import (
    CICheckContext,
    FeedbackItem,
    IssueCommentContext,
    ReviewContext,
    SourceInfo,
    WorkflowContext,
)
from prfeedback.logparser import Failure, ParserRegistry, build_default_registry

logger = logging.getLogger(__name__)

REVIEW_BODY_MAX_LEN = 500
LINE_COMMENT_MAX_LEN = 300
COMMENT_BODY_MAX_LEN = 500
COMMENT_TITLE_MAX_LEN = 100


def truncate_text(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return text[:max_len] + "..."


def parse_workflow_detail(detail: str) -> tuple[str, str]:
    """Split "job: step" into (job, step). A bare job name gives (job, "")."""
    job, sep, step = detail.partition(": ")
    if not sep:
        return detail, ""
    return job, step


def extract_title_from_comment(body: str) -> str:
    """First line of the comment, truncated, or a generic title."""
    first_line = (body or "").split("\n")[0].strip()
    if not first_line:
        return "Address comment feedback"
    return truncate_text(first_line, COMMENT_TITLE_MAX_LEN)


def format_failure_description(failure: Failure) -> str:
    """Markdown description for one parsed failure."""
    parts = [f"`{failure.name}` failed"]
    if failure.location:
        parts[0] += f" at {failure.location}"
    parts.append("")
    if failure.message:
        parts.append(f"**Error:** {failure.message}")
        parts.append("")
    if failure.raw_output:
        parts.append("```")
        parts.append(failure.raw_output)
        parts.append("```")
    return "\n".join(parts).rstrip("\n")


class FeedbackProcessor:
    """Builds prioritized, actionable feedback items from a PR snapshot."""

    def __init__(
        self,
        rules: FeedbackRules | None = None,
        registry: ParserRegistry | None = None,
    ):
        self.rules = rules or FeedbackRules()
        self.registry = registry or build_default_registry()

    def process(
        self,
        snapshot: PRSnapshot,
        job_logs: Mapping[int, str] | None = None,
    ) -> list[FeedbackItem]:
        """Collect feedback items, filtered by priority and actionability.

        job_logs maps workflow job IDs to raw log text. Failed test and lint
        jobs with a log get one item per parsed failure; everything else gets
        a single generic item per failed job.
        """
        if self.rules.ignore_draft_prs and (snapshot.state or "").upper() == "DRAFT":
            logger.debug(f"Skipping draft PR {snapshot.url}")
            return []

        items: list[FeedbackItem] = []
        if self.rules.create_bead_for_failed_checks:
            items.extend(self.process_status_checks(snapshot))
        items.extend(self.process_workflow_runs(snapshot, job_logs or {}))
        if self.rules.create_bead_for_review_comments:
            items.extend(self.process_reviews(snapshot))
        items.extend(self.process_comments(snapshot))
        items.extend(self.process_conflicts(snapshot))

        filtered = [
            item for item in items
            if item.actionable and item.priority <= self.rules.min_priority
        ]
        logger.debug(
            f"PR {snapshot.url}: {len(items)} feedback item(s), "
            f"{len(filtered)} after filtering"
        )
        return filtered

    def process_status_checks(self, snapshot: PRSnapshot) -> list[FeedbackItem]:
        items = []
        for check in snapshot.checks or []:
            state = (check.state or "").upper()
            if state not in CHECK_FAILURE_STATES:
                continue

            feedback_type = classify.categorize_check(check.context)
            items.append(FeedbackItem(
                type=feedback_type,
                title=f"Fix {check.context} failure",
                description=check.description,
                source=SourceInfo(
                    type=SOURCE_CI,
                    id=check.context,
                    name=check.context,
                    url=check.url,
                ),
                priority=classify.priority_for_type(feedback_type),
                ci_check=CICheckContext(check_name=check.context, state=state),
            ))
        return items

    def process_workflow_runs(
        self,
        snapshot: PRSnapshot,
        job_logs: Mapping[int, str],
    ) -> list[FeedbackItem]:
        items = []
        for workflow in snapshot.workflows or []:
            if (workflow.conclusion or "").lower() != WORKFLOW_FAILURE:
                continue

            for job in workflow.jobs or []:
                if (job.conclusion or "").lower() != WORKFLOW_FAILURE:
                    continue

                log_text = job_logs.get(job.id)
                if log_text and (classify.is_test_job(job.name) or classify.is_lint_job(job.name)):
                    failures = self.registry.parse_failures(log_text)
                    if failures:
                        items.extend(self._failure_item(workflow, job, f) for f in failures)
                        continue
                    logger.debug(f"No parsable failures in log for job {job.name} ({job.id})")

                item = self._generic_failure_item(workflow, job)
                if self._should_create_for_workflow(item.type):
                    items.append(item)
        return items

    def _should_create_for_workflow(self, feedback_type: str) -> bool:
        if feedback_type == FEEDBACK_TEST:
            return self.rules.create_bead_for_test_failures
        if feedback_type == FEEDBACK_LINT:
            return self.rules.create_bead_for_lint_errors
        if feedback_type in (FEEDBACK_BUILD, FEEDBACK_CI):
            return self.rules.create_bead_for_failed_checks
        return True

    def _failure_item(self, workflow: WorkflowRun, job: Job, failure: Failure) -> FeedbackItem:
        short_package = failure.package.split("/")[-1] if failure.package else ""
        if failure.location:
            title = f"Fix {failure.name} at {failure.location}"
        elif short_package:
            title = f"Fix {failure.name} in {short_package}"
        else:
            title = f"Fix {failure.name}"

        feedback_type = FEEDBACK_LINT if classify.is_lint_job(job.name) else FEEDBACK_TEST

        return FeedbackItem(
            type=feedback_type,
            title=title,
            description=format_failure_description(failure),
            source=SourceInfo(
                type=SOURCE_WORKFLOW,
                id=f"{job.id}-{failure.name}-{failure.file}-{failure.line}-{failure.column}",
                name=workflow.name,
                url=job.url,
            ),
            priority=classify.priority_for_type(feedback_type),
            workflow=WorkflowContext(
                workflow_name=workflow.name,
                failure_detail=failure.name,
                run_id=workflow.id,
                job_name=job.name,
            ),
        )

    def _generic_failure_item(self, workflow: WorkflowRun, job: Job) -> FeedbackItem:
        failed_step = next(
            (s.name for s in (job.steps or []) if (s.conclusion or "").lower() == WORKFLOW_FAILURE),
            "",
        )
        detail = f"{job.name}: {failed_step}" if failed_step else job.name
        feedback_type = classify.categorize_workflow(workflow.name, detail)
        job_name, step_name = parse_workflow_detail(detail)

        return FeedbackItem(
            type=feedback_type,
            title=f"Fix {detail} in {workflow.name}",
            description=f"Workflow '{workflow.name}' failed at: {detail}",
            source=SourceInfo(
                type=SOURCE_WORKFLOW,
                id=str(job.id),
                name=workflow.name,
                url=job.url or workflow.url,
            ),
            priority=classify.priority_for_type(feedback_type),
            workflow=WorkflowContext(
                workflow_name=workflow.name,
                failure_detail=detail,
                run_id=workflow.id,
                job_name=job_name,
                step_name=step_name,
            ),
        )

    def process_reviews(self, snapshot: PRSnapshot) -> list[FeedbackItem]:
        items = []
        for review in snapshot.reviews or []:
            if (review.state or "").upper() == REVIEW_CHANGES_REQUESTED:
                items.append(FeedbackItem(
                    type=FEEDBACK_REVIEW,
                    title=f"Address review feedback from {review.author}",
                    description=truncate_text(review.body, REVIEW_BODY_MAX_LEN),
                    source=SourceInfo(
                        type=SOURCE_REVIEW_COMMENT,
                        id=str(review.id),
                        name=review.author,
                        url=snapshot.url,
                    ),
                    priority=classify.CHANGES_REQUESTED_PRIORITY,
                    review=ReviewContext(reviewer=review.author, comment_id=review.id),
                ))

            # Every substantive line comment counts, whatever the review state
            for comment in review.comments or []:
                if classify.is_trivial_comment(comment.body):
                    continue

                line = comment.line or comment.original_line
                items.append(FeedbackItem(
                    type=FEEDBACK_REVIEW,
                    title=f"Fix issue in {comment.path} (line {line})",
                    description=truncate_text(comment.body, LINE_COMMENT_MAX_LEN),
                    source=SourceInfo(
                        type=SOURCE_REVIEW_COMMENT,
                        id=str(comment.id),
                        name=comment.author,
                        url=f"{snapshot.url}#discussion_r{comment.id}",
                    ),
                    priority=classify.priority_for_type(FEEDBACK_REVIEW),
                    review=ReviewContext(
                        reviewer=comment.author,
                        comment_id=comment.id,
                        file=comment.path,
                        line=line,
                        in_reply_to_id=comment.in_reply_to_id,
                    ),
                ))
        return items

    def process_comments(self, snapshot: PRSnapshot) -> list[FeedbackItem]:
        items = []
        for comment in snapshot.comments or []:
            if not classify.is_actionable_comment(comment.body):
                continue

            feedback_type = classify.categorize_comment(comment.author, comment.body)
            items.append(FeedbackItem(
                type=feedback_type,
                title=extract_title_from_comment(comment.body),
                description=truncate_text(comment.body, COMMENT_BODY_MAX_LEN),
                source=SourceInfo(
                    type=SOURCE_ISSUE_COMMENT,
                    id=str(comment.id),
                    name=comment.author,
                    url=f"{snapshot.url}#issuecomment-{comment.id}",
                ),
                priority=classify.priority_for_type(feedback_type),
                issue_comment=IssueCommentContext(author=comment.author, comment_id=comment.id),
            ))
        return items

    def process_conflicts(self, snapshot: PRSnapshot) -> list[FeedbackItem]:
        if (snapshot.mergeable_state or "").upper() != MERGEABLE_STATE_DIRTY:
            return []

        return [FeedbackItem(
            type=FEEDBACK_CONFLICT,
            title="Resolve merge conflicts with main",
            description=(
                "This branch has merge conflicts that must be resolved. "
                "Merge main into this branch and resolve any conflicts."
            ),
            source=SourceInfo(
                type=SOURCE_CI,
                id="merge-conflict",
                name="Merge Conflict",
                url=snapshot.url,
            ),
            priority=classify.priority_for_type(FEEDBACK_CONFLICT),
            ci_check=CICheckContext(check_name="Merge Conflict", state=MERGEABLE_STATE_DIRTY),
        )]
