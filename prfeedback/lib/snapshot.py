"""
PR status snapshot: the read-only input to status extraction and feedback
processing.

Snapshots are usually built from the JSON the caller fetched from GitHub
(gh pr view --json ..., the checks and Actions APIs). The loader is lenient:
missing or mistyped fields become empty values rather than errors, so
downstream extraction can fall back to its defaults.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

# Python's fromisoformat only takes up to 6 fractional digits; GitHub sends 7
_FRACTION_PATTERN = re.compile(r'(\.\d{6})\d+')


@dataclass
class StatusCheck:
    context: str = ""
    state: str = ""  # SUCCESS, FAILURE, ERROR, PENDING, ...
    description: str = ""
    url: str = ""
    created_at: datetime | None = None


@dataclass
class ReviewComment:
    """A comment on a specific line in a PR."""
    id: int = 0
    path: str = ""
    line: int = 0
    original_line: int = 0
    body: str = ""
    author: str = ""
    created_at: datetime | None = None
    in_reply_to_id: int = 0


@dataclass
class Review:
    id: int = 0
    state: str = ""  # APPROVED, CHANGES_REQUESTED, COMMENTED, DISMISSED
    author: str = ""
    body: str = ""
    created_at: datetime | None = None
    comments: list[ReviewComment] = field(default_factory=list)


@dataclass
class Comment:
    """A general (issue) comment on the PR."""
    id: int = 0
    body: str = ""
    author: str = ""
    created_at: datetime | None = None


@dataclass
class Step:
    name: str = ""
    status: str = ""
    conclusion: str = ""


@dataclass
class Job:
    id: int = 0
    name: str = ""
    status: str = ""
    conclusion: str = ""
    url: str = ""
    steps: list[Step] = field(default_factory=list)


@dataclass
class WorkflowRun:
    id: int = 0
    name: str = ""
    status: str = ""  # completed, in_progress, queued
    conclusion: str = ""  # success, failure, cancelled, skipped
    url: str = ""
    created_at: datetime | None = None
    jobs: list[Job] = field(default_factory=list)


@dataclass
class PRSnapshot:
    """Everything known about a PR at one point in time."""
    url: str = ""
    state: str = ""  # OPEN, CLOSED, MERGED, DRAFT
    mergeable_state: str = ""  # CLEAN, DIRTY, BLOCKED, ...
    checks: list[StatusCheck] = field(default_factory=list)
    reviews: list[Review] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)
    workflows: list[WorkflowRun] = field(default_factory=list)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an RFC3339 timestamp into an aware UTC datetime.

    Accepts datetime objects as-is (naive ones are assumed UTC).
    Returns None for anything unparseable.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        text = _FRACTION_PATTERN.sub(r'\1', text)
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            logger.debug(f"Unparseable timestamp: {value!r}")
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _str(data: dict, *keys: str) -> str:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, dict):
            # gh returns {"login": "..."} for authors
            value = value.get("login") or value.get("name") or ""
        return str(value)
    return ""


def _int(data: dict, *keys: str) -> int:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        try:
            return int(value)
        except (TypeError, ValueError):
            return 0
    return 0


def _list(data: dict, *keys: str) -> list[dict]:
    for key in keys:
        value = data.get(key)
        if isinstance(value, list):
            return [v for v in value if isinstance(v, dict)]
    return []


def _check_from_dict(data: dict) -> StatusCheck:
    return StatusCheck(
        # Check runs use name/conclusion, commit statuses use context/state
        context=_str(data, "context", "name"),
        state=_str(data, "state", "conclusion").upper(),
        description=_str(data, "description"),
        url=_str(data, "url", "targetUrl", "detailsUrl"),
        created_at=parse_timestamp(data.get("createdAt") or data.get("created_at")),
    )


def _review_comment_from_dict(data: dict) -> ReviewComment:
    return ReviewComment(
        id=_int(data, "id"),
        path=_str(data, "path"),
        line=_int(data, "line"),
        original_line=_int(data, "originalLine", "original_line"),
        body=_str(data, "body"),
        author=_str(data, "author", "user"),
        created_at=parse_timestamp(data.get("createdAt") or data.get("created_at")),
        in_reply_to_id=_int(data, "inReplyToId", "in_reply_to_id"),
    )


def _review_from_dict(data: dict) -> Review:
    return Review(
        id=_int(data, "id"),
        state=_str(data, "state").upper(),
        author=_str(data, "author", "user"),
        body=_str(data, "body"),
        created_at=parse_timestamp(
            data.get("createdAt") or data.get("submittedAt") or data.get("created_at")
        ),
        comments=[_review_comment_from_dict(c) for c in _list(data, "comments")],
    )


def _comment_from_dict(data: dict) -> Comment:
    return Comment(
        id=_int(data, "id"),
        body=_str(data, "body"),
        author=_str(data, "author", "user"),
        created_at=parse_timestamp(data.get("createdAt") or data.get("created_at")),
    )


def _job_from_dict(data: dict) -> Job:
    return Job(
        id=_int(data, "id", "databaseId"),
        name=_str(data, "name"),
        status=_str(data, "status").lower(),
        conclusion=_str(data, "conclusion").lower(),
        url=_str(data, "url", "html_url"),
        steps=[
            Step(
                name=_str(s, "name"),
                status=_str(s, "status").lower(),
                conclusion=_str(s, "conclusion").lower(),
            )
            for s in _list(data, "steps")
        ],
    )


def _workflow_from_dict(data: dict) -> WorkflowRun:
    return WorkflowRun(
        id=_int(data, "id", "databaseId"),
        name=_str(data, "name", "workflowName"),
        status=_str(data, "status").lower(),
        conclusion=_str(data, "conclusion").lower(),
        url=_str(data, "url", "html_url"),
        created_at=parse_timestamp(data.get("createdAt") or data.get("created_at")),
        jobs=[_job_from_dict(j) for j in _list(data, "jobs")],
    )


def snapshot_from_dict(data: Any) -> PRSnapshot:
    """Build a PRSnapshot from GitHub-shaped JSON.

    Never raises: a non-dict input gives an empty snapshot.
    """
    if not isinstance(data, dict):
        logger.warning(f"Expected a dict for PR snapshot, got {type(data).__name__}")
        return PRSnapshot()

    return PRSnapshot(
        url=_str(data, "url"),
        state=_str(data, "state"),
        mergeable_state=_str(data, "mergeableState", "mergeStateStatus", "mergeable_state"),
        checks=[_check_from_dict(c) for c in _list(data, "checks", "statusCheckRollup")],
        reviews=[_review_from_dict(r) for r in _list(data, "reviews")],
        comments=[_comment_from_dict(c) for c in _list(data, "comments")],
        workflows=[_workflow_from_dict(w) for w in _list(data, "workflows")],
    )
