"""
Feedback classification rules.

The keyword tables are ordered: the first group with a keyword contained in
the (lowercased) text decides the type. Order matters. A check named
"build-test" is a test failure because "test" comes first.
"""

from prfeedback.lib.constants import (
    DEFAULT_PRIORITY,
    FEEDBACK_BUILD,
    FEEDBACK_CI,
    FEEDBACK_CONFLICT,
    FEEDBACK_GENERAL,
    FEEDBACK_LINT,
    FEEDBACK_REVIEW,
    FEEDBACK_SECURITY,
    FEEDBACK_TEST,
)

# (keywords, feedback type), first match wins
CHECK_RULES: list[tuple[tuple[str, ...], str]] = [
    (("test",), FEEDBACK_TEST),
    (("lint", "style"), FEEDBACK_LINT),
    (("build", "compile"), FEEDBACK_BUILD),
    (("security", "vulnerability"), FEEDBACK_SECURITY),
]

# Workflow names also commonly say "format" and "scan"
WORKFLOW_RULES: list[tuple[tuple[str, ...], str]] = [
    (("test",), FEEDBACK_TEST),
    (("lint", "style", "format"), FEEDBACK_LINT),
    (("build", "compile"), FEEDBACK_BUILD),
    (("security", "vulnerability", "scan"), FEEDBACK_SECURITY),
]

# Bot comments: security beats test, which needs both words
BOT_COMMENT_RULES: list[tuple[tuple[str, ...], str]] = [
    (("security",), FEEDBACK_SECURITY),
    (("vulnerability",), FEEDBACK_SECURITY),
    (("test", "fail"), FEEDBACK_TEST),
    (("lint",), FEEDBACK_LINT),
    (("style",), FEEDBACK_LINT),
]

PRIORITY_BY_TYPE = {
    FEEDBACK_SECURITY: 0,
    FEEDBACK_BUILD: 1,
    FEEDBACK_CI: 1,
    FEEDBACK_CONFLICT: 1,
    FEEDBACK_TEST: 2,
    FEEDBACK_LINT: 2,
    FEEDBACK_REVIEW: 2,
    FEEDBACK_GENERAL: 3,
}

# Reviews that request changes outrank their type's default
CHANGES_REQUESTED_PRIORITY = 1

ACTIONABLE_KEYWORDS = (
    "please",
    "should",
    "must",
    "need to",
    "needs to",
    "fix",
    "change",
    "update",
    "add",
    "remove",
    "todo",
    "fixme",
    "bug",
    "error",
    "warning",
    "failed",
    "failure",
    "detected",
    "vulnerability",
    "risk",
)

TRIVIAL_PHRASES = (
    "lgtm",
    "looks good to me",
    "looks good",
    "nice",
    "great",
    "thanks",
    "thank you",
    "+1",
    "\U0001f44d",
    "approved",
    "ship it",
)

# Short comments mentioning these are still worth a bead
SHORT_COMMENT_OVERRIDES = ("fix", "bug")
SHORT_COMMENT_LENGTH = 10

TEST_JOB_KEYWORDS = ("test",)
LINT_JOB_KEYWORDS = ("lint", "format", "style")


def first_match(text: str | None, rules: list[tuple[tuple[str, ...], str]], default: str) -> str:
    """Return the type of the first rule with a keyword found in text."""
    lower = (text or "").lower()
    for keywords, feedback_type in rules:
        if any(k in lower for k in keywords):
            return feedback_type
    return default


def _first_match_all(text: str, rules: list[tuple[tuple[str, ...], str]], default: str) -> str:
    # Like first_match, but every keyword in the group must be present
    lower = text.lower()
    for keywords, feedback_type in rules:
        if all(k in lower for k in keywords):
            return feedback_type
    return default


def categorize_check(check_name: str | None) -> str:
    return first_match(check_name, CHECK_RULES, FEEDBACK_CI)


def categorize_workflow(workflow_name: str | None, failure_detail: str | None) -> str:
    return first_match(f"{workflow_name or ''} {failure_detail or ''}", WORKFLOW_RULES, FEEDBACK_CI)


def categorize_comment(author: str | None, body: str | None) -> str:
    """Type for a general PR comment.

    Human comments are review feedback. Bot comments are only promoted when
    they mention security, failing tests, or lint; otherwise they're general.
    """
    if "bot" not in (author or ""):
        return FEEDBACK_REVIEW
    return _first_match_all(body or "", BOT_COMMENT_RULES, FEEDBACK_GENERAL)


def priority_for_type(feedback_type: str | None) -> int:
    return PRIORITY_BY_TYPE.get(feedback_type or "", DEFAULT_PRIORITY)


def is_actionable_comment(body: str | None) -> bool:
    """True if a general comment asks for something to be done."""
    lower = (body or "").lower()
    return any(k in lower for k in ACTIONABLE_KEYWORDS)


def is_trivial_comment(body: str | None) -> bool:
    """True only for comments that are nothing but acknowledgement."""
    trimmed = (body or "").strip().lower()

    for phrase in TRIVIAL_PHRASES:
        if trimmed in (phrase, phrase + "!", phrase + "."):
            return True

    if len(trimmed) < SHORT_COMMENT_LENGTH:
        return not any(k in trimmed for k in SHORT_COMMENT_OVERRIDES)

    return False


def is_test_job(name: str | None) -> bool:
    lower = (name or "").lower()
    return any(k in lower for k in TEST_JOB_KEYWORDS)


def is_lint_job(name: str | None) -> bool:
    lower = (name or "").lower()
    return any(k in lower for k in LINT_JOB_KEYWORDS)
