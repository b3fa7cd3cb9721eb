"""
Feedback processing rules.

Loads feedback.yaml from the project directory. If no config file exists,
returns defaults. Example:

    min_priority: 1
    ignore_draft_prs: false
    create_bead_for_lint_errors: false
"""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from prfeedback.lib.constants import MAX_PRIORITY, MIN_PRIORITY

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "feedback.yaml"


@dataclass
class FeedbackRules:
    """Which feedback becomes beads."""
    # Keep items with priority <= min_priority (0 = critical only)
    min_priority: int = 2
    # Draft PRs produce no feedback
    ignore_draft_prs: bool = True
    create_bead_for_failed_checks: bool = True
    create_bead_for_test_failures: bool = True
    create_bead_for_lint_errors: bool = True
    create_bead_for_review_comments: bool = True


def _clamp_priority(value) -> int:
    try:
        priority = int(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid min_priority {value!r}, using default")
        return FeedbackRules.min_priority
    return max(MIN_PRIORITY, min(MAX_PRIORITY, priority))


def rules_from_dict(data: dict | None) -> FeedbackRules:
    """Overlay known keys from data onto the default rules."""
    rules = FeedbackRules()
    if not data:
        return rules

    known = {f.name for f in fields(FeedbackRules)}
    for key, value in data.items():
        if key not in known:
            logger.warning(f"Ignoring unknown feedback rule: {key}")
            continue
        if key == "min_priority":
            rules.min_priority = _clamp_priority(value)
        else:
            setattr(rules, key, bool(value))

    return rules


def load_feedback_rules(project_dir: Optional[Path]) -> FeedbackRules:
    """Load feedback.yaml and return FeedbackRules.

    If project_dir is None, the file doesn't exist, or it can't be parsed,
    returns defaults.
    """
    if project_dir is None:
        return FeedbackRules()

    config_path = project_dir / CONFIG_FILENAME
    if not config_path.exists():
        return FeedbackRules()

    try:
        data = yaml.safe_load(config_path.read_text())
    except (yaml.YAMLError, OSError) as e:
        logger.warning(f"Failed to parse {config_path}: {e}")
        return FeedbackRules()

    if data is not None and not isinstance(data, dict):
        logger.warning(f"Expected a mapping in {config_path}, using defaults")
        return FeedbackRules()

    return rules_from_dict(data)
