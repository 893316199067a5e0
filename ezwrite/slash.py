"""Slash-command popup state.

Typing ``/`` followed by up to ten word characters alone on a line opens a
popup of matching commands. The controller only tracks the popup; the engine
rewrites the document when a command is committed.
"""

import re
from dataclasses import dataclass
from typing import Optional

from .constants import EditorConstants
from .strike import clean

_TRIGGER_RE = re.compile(r"^/\w{0,%d}$" % EditorConstants.SLASH_MAX_NAME)


@dataclass(frozen=True)
class SlashCommand:
    name: str
    description: str


SLASH_COMMANDS = (
    SlashCommand("list", "Create a checklist"),
    SlashCommand("line", "Insert a divider"),
    SlashCommand("timer", "Start a timer"),
)


def trigger_query(line: str) -> Optional[str]:
    """Return the text after the slash if the line triggers the popup."""
    text = clean(line).strip()
    if not _TRIGGER_RE.match(text):
        return None
    return text[1:]


class SlashCommandController:
    def __init__(self, commands=SLASH_COMMANDS):
        self.commands = tuple(commands)
        self.line_index: Optional[int] = None
        self.query = ""
        self.matches: list[SlashCommand] = []
        self.highlight = 0
        self._dismissed: Optional[tuple[int, str]] = None

    @property
    def active(self) -> bool:
        return self.line_index is not None and bool(self.matches)

    def filter(self, query: str) -> list[SlashCommand]:
        prefix = query.lower()
        return [cmd for cmd in self.commands if cmd.name.startswith(prefix)]

    def update(self, lines: list[str], line_index: int) -> None:
        """Recompute the popup for the line holding the cursor."""
        query = trigger_query(lines[line_index]) if 0 <= line_index < len(lines) else None
        if query is None:
            self.close()
            self._dismissed = None
            return
        if self._dismissed == (line_index, query):
            return
        self._dismissed = None
        if self.line_index != line_index or self.query != query:
            self.highlight = 0
        self.line_index = line_index
        self.query = query
        self.matches = self.filter(query)
        if not self.matches:
            self.close()
            return
        self.highlight = min(self.highlight, len(self.matches) - 1)

    def move(self, delta: int) -> None:
        if not self.matches:
            return
        self.highlight = min(max(0, self.highlight + delta), len(self.matches) - 1)

    def highlighted(self) -> Optional[SlashCommand]:
        if not self.active:
            return None
        return self.matches[self.highlight]

    def select_number(self, number: int) -> Optional[SlashCommand]:
        """Return the command shown as ``number`` (1-based), if any."""
        if not self.active or not 1 <= number <= len(self.matches):
            return None
        return self.matches[number - 1]

    def dismiss(self) -> None:
        """Close the popup until the trigger text changes."""
        if self.line_index is not None:
            self._dismissed = (self.line_index, self.query)
        self.close()

    def close(self) -> None:
        self.line_index = None
        self.query = ""
        self.matches = []
        self.highlight = 0

    def reset(self) -> None:
        self.close()
        self._dismissed = None
