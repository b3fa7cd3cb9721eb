"""
Failure records produced by the log parsers.

Test failures and lint annotations share one record type so that the
registry can union results from every parser that recognized the log.
"""

from dataclasses import dataclass

KIND_TEST = "test"
KIND_LINT = "lint"


@dataclass
class Failure:
    """A single parsed CI failure (failing test or lint annotation)."""
    name: str  # Test name or linter name
    package: str = ""  # Go package path, empty for lint annotations
    file: str = ""  # e.g. "broadcast_test.go"
    line: int = 0
    column: int = 0  # 0 if not applicable
    message: str = ""
    raw_output: str = ""  # Log snippet around the failure
    kind: str = KIND_TEST

    @property
    def key(self) -> tuple:
        """Identity used to collapse repeated reports of the same failure."""
        if self.kind == KIND_LINT:
            return (self.file, self.line, self.column)
        return (self.package, self.name)

    @property
    def location(self) -> str:
        """file:line[:col], or empty if the file is unknown."""
        if not self.file:
            return ""
        if self.column > 0:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.file}:{self.line}"


def format_failure(failure: Failure) -> str:
    """One-line form: "file.go:10:5: message (name)"."""
    location = failure.location
    if location:
        return f"{location}: {failure.message} ({failure.name})"
    return f"{failure.message} ({failure.name})"


def group_by_name(failures: list[Failure]) -> dict[str, list[Failure]]:
    """Group failures by test/linter name, preserving discovery order."""
    groups: dict[str, list[Failure]] = {}
    for f in failures:
        groups.setdefault(f.name, []).append(f)
    return groups


def summarize_failures(failures: list[Failure]) -> str:
    """Build a short summary such as "2 test(s) failed, 3 lint error(s)"."""
    tests = [f for f in failures if f.kind == KIND_TEST]
    lints = [f for f in failures if f.kind == KIND_LINT]

    parts = []
    if tests:
        parts.append(f"{len(tests)} test(s) failed")
    if lints:
        parts.append(f"{len(lints)} lint error(s)")
    return ", ".join(parts)
