"""CI log parsing for PR feedback.

Cleans raw GitHub Actions logs and extracts structured failures from the
formats we recognize. Callers build a registry once at startup and pass it
to whatever needs to parse logs:

    registry = build_default_registry()
    failures = registry.parse_failures(log_text)

Unrecognized logs produce an empty list, never an exception.
"""

from prfeedback.logparser.clean import (
    clean_log,
    strip_ansi,
    strip_job_prefix,
    strip_timestamps,
)
from prfeedback.logparser.failure import (
    KIND_LINT,
    KIND_TEST,
    Failure,
    format_failure,
    group_by_name,
    summarize_failures,
)
from prfeedback.logparser.go_test import GoTestParser
from prfeedback.logparser.lint import (
    LintError,
    LintParser,
    group_by_linter,
    parse_lint_errors,
)
from prfeedback.logparser.registry import (
    LogParser,
    ParserRegistry,
    RegistryFrozenError,
)


def build_default_registry() -> ParserRegistry:
    """Registry with the Go test parser followed by the lint parser, frozen."""
    return ParserRegistry([GoTestParser(), LintParser()]).freeze()


__all__ = [
    "KIND_LINT",
    "KIND_TEST",
    "Failure",
    "GoTestParser",
    "LintError",
    "LintParser",
    "LogParser",
    "ParserRegistry",
    "RegistryFrozenError",
    "build_default_registry",
    "clean_log",
    "format_failure",
    "group_by_linter",
    "group_by_name",
    "parse_lint_errors",
    "strip_ansi",
    "strip_job_prefix",
    "strip_timestamps",
    "summarize_failures",
]
