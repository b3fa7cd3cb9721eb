"""
PR status extraction.

Reduces a PR snapshot to one CI status and one approval status. Extraction
is a pure function of the snapshot; nothing is carried between calls.
"""

import json
import logging
from dataclasses import dataclass, field

from prfeedback.lib.constants import (
    APPROVAL_APPROVED,
    APPROVAL_CHANGES_REQUESTED,
    APPROVAL_PENDING,
    CHECK_FAILURE_STATES,
    CHECK_PENDING_STATES,
    CI_FAILURE,
    CI_PENDING,
    CI_SUCCESS,
    PR_STATE_CLOSED,
    PR_STATE_MERGED,
    PR_STATE_OPEN,
    REVIEW_APPROVED,
    REVIEW_CHANGES_REQUESTED,
    REVIEW_COMMENTED,
    WORKFLOW_FAILURE,
    WORKFLOW_PENDING_STATUSES,
)
from prfeedback.lib.snapshot import PRSnapshot, StatusCheck, WorkflowRun, parse_timestamp

logger = logging.getLogger(__name__)


@dataclass
class PRStatusInfo:
    """Summarized PR status, ready for persistence."""
    ci_status: str = CI_PENDING  # pending, success, failure
    approval_status: str = APPROVAL_PENDING  # pending, approved, changes_requested
    approvers: list[str] = field(default_factory=list)
    pr_state: str = PR_STATE_OPEN  # open, closed, merged


def extract_status(snapshot: PRSnapshot | None) -> PRStatusInfo:
    """Extract CI status, approval status and PR state from a snapshot."""
    if snapshot is None:
        return PRStatusInfo()

    approval_status, approvers = extract_approval_status(snapshot)
    return PRStatusInfo(
        ci_status=extract_ci_status(snapshot),
        approval_status=approval_status,
        approvers=approvers,
        pr_state=normalize_pr_state(snapshot.state),
    )


def normalize_pr_state(state: str | None) -> str:
    """Map GitHub's OPEN/CLOSED/MERGED to lowercase. Unknown means open."""
    normalized = (state or "").upper()
    if normalized == "CLOSED":
        return PR_STATE_CLOSED
    if normalized == "MERGED":
        return PR_STATE_MERGED
    return PR_STATE_OPEN


def _check_failed(check: StatusCheck) -> bool:
    return (check.state or "").upper() in CHECK_FAILURE_STATES


def _check_pending(check: StatusCheck) -> bool:
    return (check.state or "").upper() in CHECK_PENDING_STATES


def _workflow_failed(workflow: WorkflowRun) -> bool:
    return (workflow.conclusion or "").lower() == WORKFLOW_FAILURE


def _workflow_pending(workflow: WorkflowRun) -> bool:
    if (workflow.status or "").lower() in WORKFLOW_PENDING_STATUSES:
        return True
    # Completed (or unknown) with no conclusion yet
    return not workflow.conclusion


def extract_ci_status(snapshot: PRSnapshot) -> str:
    """Overall CI status from status checks and workflow runs.

    Any failure wins over pending, which wins over success. No checks and
    no workflows at all means CI hasn't reported yet: pending.
    """
    checks = snapshot.checks or []
    workflows = snapshot.workflows or []

    if not checks and not workflows:
        return CI_PENDING

    if any(_workflow_failed(w) for w in workflows) or any(_check_failed(c) for c in checks):
        return CI_FAILURE

    if any(_workflow_pending(w) for w in workflows) or any(_check_pending(c) for c in checks):
        return CI_PENDING

    return CI_SUCCESS


def extract_approval_status(snapshot: PRSnapshot) -> tuple[str, list[str]]:
    """Approval status and approvers from reviews.

    COMMENTED reviews don't count. For each author only the chronologically
    latest remaining review counts; a strictly later timestamp overrides.

    Returns: (status, approvers)
    """
    latest_state: dict[str, str] = {}
    latest_time: dict = {}

    for review in snapshot.reviews or []:
        state = (review.state or "").upper()
        if state == REVIEW_COMMENTED:
            continue

        author = review.author or ""
        # Naive and aware datetimes can't be compared; treat naive as UTC
        created_at = parse_timestamp(review.created_at)
        if author not in latest_state:
            latest_state[author] = state
            latest_time[author] = created_at
            continue

        previous = latest_time[author]
        if created_at is not None and (previous is None or created_at > previous):
            latest_state[author] = state
            latest_time[author] = created_at

    approvers = [user for user, state in latest_state.items() if state == REVIEW_APPROVED]
    changes_requested = any(state == REVIEW_CHANGES_REQUESTED for state in latest_state.values())

    if changes_requested:
        return APPROVAL_CHANGES_REQUESTED, approvers
    if approvers:
        return APPROVAL_APPROVED, approvers
    return APPROVAL_PENDING, []


def approvers_to_json(approvers: list[str]) -> str:
    """Serialize approvers for storage."""
    return json.dumps(list(approvers or []))


def approvers_from_json(text: str | None) -> list[str]:
    """Parse stored approvers. Anything malformed gives []."""
    if not text:
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse approvers JSON: {e}")
        return []
    if not isinstance(data, list):
        return []
    return [str(a) for a in data]


def diff_status(old: PRStatusInfo, new: PRStatusInfo) -> list[str]:
    """Describe what changed between two extractions.

    Approvers are compared as multisets, so reordering alone is not a change.
    Returns an empty list when nothing changed.
    """
    changes = []
    if old.ci_status != new.ci_status:
        changes.append(f"CI status changed: {old.ci_status} -> {new.ci_status}")
    if old.approval_status != new.approval_status:
        changes.append(f"Approval status changed: {old.approval_status} -> {new.approval_status}")
    if sorted(old.approvers) != sorted(new.approvers):
        changes.append(f"Approvers changed: {old.approvers} -> {new.approvers}")
    if old.pr_state != new.pr_state:
        changes.append(f"PR state changed: {old.pr_state} -> {new.pr_state}")
    return changes
