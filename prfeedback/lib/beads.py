"""
Bead candidates from PR feedback.

Each FeedbackItem becomes one BeadCandidate; near-duplicates are then
collapsed so the issue tracker only gets one bead per underlying problem,
keeping the most urgent variant.
"""

import logging
import re

from prfeedback.lib.constants import (
    BEAD_BUG,
    BEAD_TASK,
    FEEDBACK_BUILD,
    FEEDBACK_CI,
    FEEDBACK_CONFLICT,
    FEEDBACK_LINT,
    FEEDBACK_REVIEW,
    FEEDBACK_SECURITY,
    FEEDBACK_TEST,
)
from prfeedback.lib.types import BeadCandidate, FeedbackItem

logger = logging.getLogger(__name__)

FEEDBACK_LABEL = "from-pr-feedback"

LABELS_BY_TYPE = {
    FEEDBACK_CI: "ci-failure",
    FEEDBACK_TEST: "test-failure",
    FEEDBACK_LINT: "lint-issue",
    FEEDBACK_BUILD: "build-failure",
    FEEDBACK_REVIEW: "review-feedback",
    FEEDBACK_SECURITY: "security",
    FEEDBACK_CONFLICT: "merge-conflict",
}

BUG_TYPES = {FEEDBACK_TEST, FEEDBACK_BUILD, FEEDBACK_CI, FEEDBACK_CONFLICT}

RESOLUTION_GUIDANCE = {
    FEEDBACK_TEST: "Fix the failing tests and ensure all test suites pass.",
    FEEDBACK_BUILD: "Resolve the build errors and ensure the project compiles successfully.",
    FEEDBACK_LINT: "Fix the linting issues to meet code style requirements.",
    FEEDBACK_SECURITY: "Address the security vulnerability with appropriate fixes.",
    FEEDBACK_REVIEW: "Address the reviewer's feedback and update the code accordingly.",
    FEEDBACK_CI: "Fix the CI pipeline failure and ensure all checks pass.",
    FEEDBACK_CONFLICT: "Merge the base branch and resolve the conflicting files.",
}
DEFAULT_RESOLUTION = "Address the issue as described above."

# Stripped (at most one) before comparing titles
TITLE_PREFIXES = ("fix ", "address ", "resolve ", "handle ")

# (URL pattern, reference kind), first match wins
EXTERNAL_REF_RULES = [
    (re.compile(r'#discussion_r(\d+)'), "review-comment"),
    (re.compile(r'#issuecomment-(\d+)'), "comment"),
    (re.compile(r'/pull/(\d+)'), "pr"),
    (re.compile(r'/issues/(\d+)'), "issue"),
]
EXTERNAL_REF_PREFIX = "gh-"
EXTERNAL_REF_MAX_LEN = 100


def external_ref(url: str) -> str:
    """Short tracker reference for a GitHub URL, e.g. "gh-comment-456789".

    Unrecognized URLs use their last path segment. Returns "" for an empty
    URL or a reference longer than EXTERNAL_REF_MAX_LEN.
    """
    if not url:
        return ""

    ref = ""
    for pattern, kind in EXTERNAL_REF_RULES:
        match = pattern.search(url)
        if match:
            ref = f"{kind}-{match.group(1)}"
            break
    if not ref:
        ref = url.rstrip("/").split("/")[-1] or "github"

    ref = EXTERNAL_REF_PREFIX + ref
    if len(ref) > EXTERNAL_REF_MAX_LEN:
        logger.debug(f"External reference for {url} too long, skipping")
        return ""
    return ref


def bead_type_for(feedback_type: str) -> str:
    return BEAD_BUG if feedback_type in BUG_TYPES else BEAD_TASK


def labels_for(feedback_type: str) -> list[str]:
    labels = []
    if feedback_type in LABELS_BY_TYPE:
        labels.append(LABELS_BY_TYPE[feedback_type])
    labels.append(FEEDBACK_LABEL)
    return labels


def format_description(item: FeedbackItem) -> str:
    """Markdown bead description with source, context and resolution."""
    lines = [item.description, "", "## Source"]
    lines.append(f"- Type: {item.type}")
    lines.append(f"- From: {item.source.name} ({item.source.type})")
    if item.source.url:
        lines.append(f"- **GitHub Link**: {item.source.url}")
    lines.append("")
    lines.append("_This issue was automatically created from GitHub PR feedback._")

    context = item.context_map()
    context.pop("source_id", None)
    if context:
        lines.append("")
        lines.append("## Context")
        for key, value in context.items():
            label = key.replace("_", " ").title()
            lines.append(f"- {label}: {value}")

    lines.append("")
    lines.append("## Resolution")
    lines.append(RESOLUTION_GUIDANCE.get(item.type, DEFAULT_RESOLUTION))

    return "\n".join(lines) + "\n"


def feedback_to_bead(item: FeedbackItem, parent_id: str = "") -> BeadCandidate:
    """Convert one feedback item into a bead candidate."""
    metadata = item.context_map()
    metadata["source_type"] = item.source.type
    metadata["source_id"] = item.source.id
    metadata["source_name"] = item.source.name
    metadata["source_url"] = item.source.url
    metadata["feedback_type"] = item.type
    ref = external_ref(item.source.url)
    if ref:
        metadata["external_ref"] = ref

    return BeadCandidate(
        title=item.title,
        description=format_description(item),
        type=bead_type_for(item.type),
        priority=item.priority,
        parent_id=parent_id,
        labels=labels_for(item.type),
        metadata=metadata,
    )


def normalize_title(title: str) -> str:
    """Lowercase and drop one leading verb such as "fix "."""
    normalized = (title or "").lower()
    for prefix in TITLE_PREFIXES:
        if normalized.startswith(prefix):
            return normalized[len(prefix):]
    return normalized


def dedup_key(bead: BeadCandidate) -> str:
    """Key under which two beads count as the same problem.

    File-specific beads keep the title so separate comments on one file stay
    separate; workflow and check beads collapse to one per workflow/check.
    """
    metadata = bead.metadata or {}
    if "file" in metadata:
        return f"{bead.type}:{metadata['file']}:{normalize_title(bead.title)}"
    if "workflow" in metadata:
        return f"{bead.type}:workflow:{metadata['workflow']}"
    if "check_name" in metadata:
        return f"{bead.type}:check:{metadata['check_name']}"
    return f"{bead.type}:{normalize_title(bead.title)}"


def deduplicate_beads(beads: list[BeadCandidate]) -> list[BeadCandidate]:
    """Collapse beads sharing a dedup key.

    The surviving bead keeps the position of the first one seen; a later
    duplicate only replaces it if its priority value is lower.
    """
    unique: dict[str, BeadCandidate] = {}
    for bead in beads:
        key = dedup_key(bead)
        existing = unique.get(key)
        if existing is None:
            unique[key] = bead
        elif bead.priority < existing.priority:
            logger.debug(f"Replacing duplicate bead {key!r} with priority {bead.priority}")
            unique[key] = bead
    return list(unique.values())


def build_bead_candidates(items: list[FeedbackItem], parent_id: str = "") -> list[BeadCandidate]:
    """Convert feedback items to beads and deduplicate them."""
    beads = [feedback_to_bead(item, parent_id) for item in items]
    unique = deduplicate_beads(beads)
    if len(unique) != len(beads):
        logger.info(f"Collapsed {len(beads) - len(unique)} duplicate bead(s)")
    return unique


def group_beads_by_type(beads: list[BeadCandidate]) -> dict[str, list[BeadCandidate]]:
    grouped: dict[str, list[BeadCandidate]] = {}
    for bead in beads:
        grouped.setdefault(bead.type, []).append(bead)
    return grouped


def prioritize_beads(beads: list[BeadCandidate]) -> list[BeadCandidate]:
    """Return a copy sorted most urgent first; ties keep their order."""
    return sorted(beads, key=lambda b: b.priority)


def bead_to_dict(bead: BeadCandidate) -> dict:
    """Plain dict for hand-off to the issue tracker."""
    return {
        "title": bead.title,
        "description": bead.description,
        "type": bead.type,
        "priority": bead.priority,
        "parent_id": bead.parent_id,
        "labels": list(bead.labels),
        "metadata": dict(bead.metadata),
    }
