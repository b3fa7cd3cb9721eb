"""
Parser registry.

A registry is an explicit value built at startup and handed to whoever needs
to parse logs. Every parser whose sniff matches runs, and the results are
concatenated: one log can hold both lint annotations and test failures.
"""

import logging
from typing import Protocol

from prfeedback.logparser.clean import clean_log
from prfeedback.logparser.failure import Failure

logger = logging.getLogger(__name__)


class LogParser(Protocol):
    """Format handler for one family of CI log lines."""
    name: str

    def can_parse(self, text: str) -> bool:
        ...

    def parse(self, text: str) -> list[Failure]:
        ...


class RegistryFrozenError(Exception):
    """Raised when registering a parser after the registry was frozen."""


class ParserRegistry:
    """Ordered, append-only collection of log parsers."""

    def __init__(self, parsers: list[LogParser] | None = None):
        self._parsers: list[LogParser] = []
        self._frozen = False
        for parser in parsers or []:
            self.register(parser)

    @property
    def parsers(self) -> tuple[LogParser, ...]:
        return tuple(self._parsers)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, parser: LogParser) -> "ParserRegistry":
        if self._frozen:
            raise RegistryFrozenError(
                f"Cannot register {getattr(parser, 'name', parser)!r}: registry is frozen"
            )
        self._parsers.append(parser)
        return self

    def freeze(self) -> "ParserRegistry":
        """Stop accepting registrations. Parsing is safe to share after this."""
        self._frozen = True
        return self

    def parse_failures(self, log_text: str) -> list[Failure]:
        """Run every matching parser over the cleaned log and union the results.

        A parser that raises is logged and skipped; partial results from the
        others are still returned. Unrecognized logs give an empty list.
        """
        cleaned = clean_log(log_text or "")
        if not cleaned.strip():
            return []

        failures: list[Failure] = []
        for parser in self._parsers:
            name = getattr(parser, "name", type(parser).__name__)
            try:
                if not parser.can_parse(cleaned):
                    continue
                found = parser.parse(cleaned)
            except Exception as e:
                logger.warning(f"Log parser {name} failed, skipping: {e}")
                continue

            logger.debug(f"Log parser {name} found {len(found)} failure(s)")
            failures.extend(found)

        return failures
