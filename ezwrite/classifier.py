"""Infer the semantic type of every document line from its content.

A line's type depends only on the line itself and the lines before it. The
classifier keeps no state: every call scans backward from the line until a
line that settles the question.
"""

import re
from enum import Enum

from .strike import clean

_TIMER_RE = re.compile(r"^timer(\s|$)", re.IGNORECASE)
_TIMER_ARGS_RE = re.compile(r"^timer\s*(.*)", re.IGNORECASE)
_HEADING_RE = re.compile(r"^##? ")


class LineType(Enum):
    """Derived type of a line."""
    TEXT = "text"
    HEADING1 = "heading1"
    HEADING2 = "heading2"
    LIST_HEADER = "list-header"
    LIST_ITEM = "list-item"
    DIVIDER = "divider"
    TIMER = "timer"


# Types rendered as structure rather than editable text
DIRECTIVE_TYPES = frozenset({LineType.LIST_HEADER, LineType.DIVIDER, LineType.TIMER})


def _normalized(line: str) -> str:
    return clean(line).strip()


def _own_type(line: str):
    """Return the type a line has on its own, or None if it needs context."""
    stripped = _normalized(line)
    lower = stripped.lower()
    if lower == "list":
        return LineType.LIST_HEADER
    if lower == "line":
        return LineType.DIVIDER
    if _TIMER_RE.match(lower):
        return LineType.TIMER
    if stripped.startswith("## "):
        return LineType.HEADING2
    if stripped.startswith("# "):
        return LineType.HEADING1
    return None


def classify(lines: list[str], index: int) -> LineType:
    """Classify ``lines[index]`` using only ``lines[:index + 1]``."""
    own = _own_type(lines[index])
    if own is not None:
        return own

    # Scan the earlier lines. Two blank lines in a row, a divider, a timer
    # or a heading close list context; the list header opens it.
    blank_run = 0
    for i in range(index - 1, -1, -1):
        stripped = _normalized(lines[i])
        lower = stripped.lower()
        if lower == "list":
            return LineType.LIST_ITEM
        if lower == "line" or _TIMER_RE.match(lower):
            return LineType.TEXT
        if _HEADING_RE.match(stripped):
            return LineType.TEXT
        if lower == "":
            blank_run += 1
            if blank_run >= 2:
                return LineType.TEXT
        else:
            blank_run = 0
    return LineType.TEXT


def classify_all(lines: list[str]) -> list[LineType]:
    return [classify(lines, i) for i in range(len(lines))]


def timer_args(line: str) -> str:
    """Return the argument string of a timer directive, trimmed and lowercased."""
    match = _TIMER_ARGS_RE.match(_normalized(line))
    return match.group(1).strip().lower() if match else ""


def is_directive(line_type: LineType) -> bool:
    return line_type in DIRECTIVE_TYPES
