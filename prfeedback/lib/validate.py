"""
Schema validation for PR feedback data.

Checks the two places where data crosses into or out of this package: the
snapshot dict a caller hands in, and the bead dicts handed on to the issue
tracker.
"""

import json
from functools import lru_cache
from pathlib import Path

import jsonschema
from jsonschema.exceptions import best_match

from prfeedback.lib.beads import bead_to_dict
from prfeedback.lib.types import BeadCandidate

SCHEMAS_DIR = Path(__file__).parent.parent / "schemas"

SNAPSHOT_SCHEMA = "pr_snapshot"
BEAD_SCHEMA = "bead"


class ValidationError(Exception):
    """Data did not match its schema."""

    def __init__(self, schema_name: str, message: str, path: str | None = None):
        self.schema_name = schema_name
        self.path = path
        text = f"[{schema_name}] {message}"
        if path:
            text += f" at {path}"
        super().__init__(text)


@lru_cache(maxsize=8)
def _validator(schema_name: str) -> jsonschema.Draft7Validator:
    schema_path = SCHEMAS_DIR / f"{schema_name}.schema.json"
    if not schema_path.exists():
        raise ValidationError(schema_name, f"Schema file not found: {schema_path}")
    return jsonschema.Draft7Validator(json.loads(schema_path.read_text()))


def validate(data: dict, schema_name: str) -> None:
    """Raise ValidationError for the most relevant schema violation, if any.

    The message notes how many other violations were found.
    """
    errors = list(_validator(schema_name).iter_errors(data))
    if not errors:
        return

    error = best_match(errors)
    path = ".".join(str(p) for p in error.absolute_path) or "(root)"
    message = error.message
    if len(errors) > 1:
        message += f" (and {len(errors) - 1} more)"
    raise ValidationError(schema_name, message, path)


def is_valid(data: dict, schema_name: str) -> bool:
    try:
        validate(data, schema_name)
    except ValidationError:
        return False
    return True


def validate_snapshot(data: dict) -> None:
    """Validate a GitHub-shaped PR snapshot dict."""
    validate(data, SNAPSHOT_SCHEMA)


def validate_before_handoff(beads: list[BeadCandidate]) -> list[dict]:
    """Convert beads to dicts, refusing the whole batch if any is invalid.

    Raises:
        ValidationError: naming the index and title of the first bad bead
    """
    result = []
    for i, bead in enumerate(beads):
        data = bead_to_dict(bead)
        try:
            validate(data, BEAD_SCHEMA)
        except ValidationError as e:
            raise ValidationError(
                BEAD_SCHEMA,
                f"Refusing to hand off invalid bead #{i} ({bead.title!r}): {e}",
                e.path,
            ) from None
        result.append(data)
    return result
