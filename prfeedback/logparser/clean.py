"""
CI log cleanup.

GitHub Actions logs arrive with three layers of noise on each line:

    Test\tRun tests\t2026-01-26T14:49:40.7760945Z \x1b[31m--- FAIL: TestName\x1b[0m

The job/step prefix has to go first, because the timestamp is only at the
start of the line once the prefix is removed. ANSI color codes can appear
anywhere and are stripped last.
"""

import re

# Format: 2026-01-26T14:49:40.7760945Z
TIMESTAMP_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d+Z\s*')

# Format: "JobName\tStepName\t2026-01-26T14:49:40.7760945Z "
JOB_PREFIX_PATTERN = re.compile(r'^[^\t\n]+\t[^\t\n]+\t\d{4}-\d{2}-\d{2}T\S+\s*')

ANSI_PATTERN = re.compile(r'\x1b\[[0-9;]*m')


def _strip_each_line(text: str, pattern: re.Pattern) -> str:
    lines = text.split("\n")
    return "\n".join(pattern.sub("", line, count=1) for line in lines)


def strip_job_prefix(text: str) -> str:
    """Remove the "job<TAB>step<TAB>timestamp" prefix from each line."""
    return _strip_each_line(text, JOB_PREFIX_PATTERN)


def strip_timestamps(text: str) -> str:
    """Remove a leading RFC3339 timestamp from each line."""
    return _strip_each_line(text, TIMESTAMP_PATTERN)


def strip_ansi(text: str) -> str:
    """Remove ANSI color sequences anywhere in the text."""
    return ANSI_PATTERN.sub("", text)


def clean_log(text: str) -> str:
    """Apply all cleanup layers.

    Each pass only ever removes characters, so repeating until nothing
    changes terminates and makes clean_log(clean_log(x)) == clean_log(x)
    even when stripping one layer exposes another.
    """
    if not text:
        return ""

    while True:
        cleaned = strip_ansi(strip_timestamps(strip_job_prefix(text)))
        if cleaned == text:
            return cleaned
        text = cleaned
