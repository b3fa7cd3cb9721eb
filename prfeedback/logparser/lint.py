"""
Parse golangci-lint annotations from GitHub Actions logs.

Annotation lines look like:

    ##[error]core/serial/condition_test.go:124:15: Error return value is not checked (errcheck)
    ##[error]core/setup_test.go:17: File is not properly formatted (gofmt)
"""

import re
from dataclasses import dataclass

from prfeedback.logparser.failure import Failure, KIND_LINT

ANNOTATION_MARKER = "##[error]"

# Only these linters are recognized, so unrelated ##[error] producers are ignored
KNOWN_LINTERS = (
    "errcheck",
    "gofmt",
    "unused",
    "staticcheck",
    "govet",
    "gosimple",
    "ineffassign",
    "typecheck",
    "thelper",
)

# ##[error]file:line:col: message (linter)
LINT_ERROR_PATTERN = re.compile(r'##\[error\]([^:]+):(\d+):(\d+):\s*(.+)\s*\(([^)]+)\)')

# ##[error]file:line: message (linter)
LINT_ERROR_NO_COL_PATTERN = re.compile(r'##\[error\]([^:]+):(\d+):\s*(.+)\s*\(([^)]+)\)')


@dataclass
class LintError:
    """A single linter annotation."""
    file: str
    line: int
    column: int  # 0 for the no-column form
    message: str
    linter: str

    def __str__(self) -> str:
        if self.column > 0:
            return f"{self.file}:{self.line}:{self.column}: {self.message} ({self.linter})"
        return f"{self.file}:{self.line}: {self.message} ({self.linter})"


def parse_lint_errors(text: str) -> list[LintError]:
    """Extract lint annotations, first occurrence per location wins."""
    errors = []
    seen: set[str] = set()

    for line in text.split("\n"):
        match = LINT_ERROR_PATTERN.search(line)
        if match:
            file, line_num, col, message, linter = match.groups()
            key = f"{file}:{line_num}:{col}"
            if key not in seen:
                seen.add(key)
                errors.append(LintError(
                    file=file,
                    line=int(line_num),
                    column=int(col),
                    message=message.strip(),
                    linter=linter,
                ))
            continue

        match = LINT_ERROR_NO_COL_PATTERN.search(line)
        if match:
            file, line_num, message, linter = match.groups()
            key = f"{file}:{line_num}"
            if key not in seen:
                seen.add(key)
                errors.append(LintError(
                    file=file,
                    line=int(line_num),
                    column=0,
                    message=message.strip(),
                    linter=linter,
                ))

    return errors


def group_by_linter(errors: list[LintError]) -> dict[str, list[LintError]]:
    """Group lint errors by linter name."""
    groups: dict[str, list[LintError]] = {}
    for e in errors:
        groups.setdefault(e.linter, []).append(e)
    return groups


class LintParser:
    """Handler for golangci-lint ##[error] annotations."""
    name = "golangci_lint"

    def can_parse(self, text: str) -> bool:
        if ANNOTATION_MARKER not in text:
            return False
        return any(f"({linter})" in text for linter in KNOWN_LINTERS)

    def parse(self, text: str) -> list[Failure]:
        return [
            Failure(
                name=e.linter,
                file=e.file,
                line=e.line,
                column=e.column,
                message=e.message,
                raw_output=str(e),
                kind=KIND_LINT,
            )
            for e in parse_lint_errors(text)
        ]
