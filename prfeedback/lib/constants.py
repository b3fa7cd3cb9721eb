"""Shared constants for PR feedback processing."""

# Overall CI status
CI_PENDING = "pending"
CI_SUCCESS = "success"
CI_FAILURE = "failure"

# Overall approval status
APPROVAL_PENDING = "pending"
APPROVAL_APPROVED = "approved"
APPROVAL_CHANGES_REQUESTED = "changes_requested"

# Normalized PR state
PR_STATE_OPEN = "open"
PR_STATE_CLOSED = "closed"
PR_STATE_MERGED = "merged"

# GitHub review states
REVIEW_APPROVED = "APPROVED"
REVIEW_CHANGES_REQUESTED = "CHANGES_REQUESTED"
REVIEW_COMMENTED = "COMMENTED"

# Status check states (statusCheckRollup, upper case)
CHECK_FAILURE_STATES = {"FAILURE", "ERROR"}
CHECK_PENDING_STATES = {"PENDING", "QUEUED", "IN_PROGRESS", "EXPECTED", ""}

# Workflow run status/conclusion (lower case)
WORKFLOW_FAILURE = "failure"
WORKFLOW_PENDING_STATUSES = {"queued", "in_progress", "waiting", "requested", "pending"}

# mergeStateStatus for a PR with conflicts
MERGEABLE_STATE_DIRTY = "DIRTY"

# Feedback types
FEEDBACK_CI = "ci_failure"
FEEDBACK_TEST = "test_failure"
FEEDBACK_LINT = "lint_error"
FEEDBACK_BUILD = "build_error"
FEEDBACK_REVIEW = "review_comment"
FEEDBACK_SECURITY = "security_issue"
FEEDBACK_CONFLICT = "merge_conflict"
FEEDBACK_GENERAL = "general"

# Feedback source types
SOURCE_CI = "ci"
SOURCE_WORKFLOW = "workflow"
SOURCE_REVIEW_COMMENT = "review_comment"
SOURCE_ISSUE_COMMENT = "issue_comment"

# Priority range, 0 = critical, 4 = backlog
MIN_PRIORITY = 0
MAX_PRIORITY = 4
DEFAULT_PRIORITY = 3

# Bead types
BEAD_BUG = "bug"
BEAD_TASK = "task"
