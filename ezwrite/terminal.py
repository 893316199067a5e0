"""Terminal interface using Blessed for display and Curtsies for input."""

import logging
import select
import sys
from typing import Optional

import blessed
from curtsies import Input

from .view import STYLE_BOLD, STYLE_DIM, STYLE_UNDER

logger = logging.getLogger(__name__)


class TerminalInterface:
    """Handles terminal I/O using Blessed."""

    def __init__(self, terminal: Optional[blessed.Terminal] = None):
        self.term = terminal or blessed.Terminal()
        self.is_fullscreen = False
        self._curtsies_input: Optional[Input] = None
        # Virtual screen state for minimal updates
        self._last_lines: Optional[list[str]] = None
        self._last_status: Optional[str] = None
        self._last_left_margin: Optional[int] = None
        self._last_view_width: Optional[int] = None

    def setup(self):
        """Enter fullscreen mode and prepare terminal."""
        print(self.term.enter_fullscreen)
        print(self.term.hide_cursor)
        print(self.term.clear)
        self.is_fullscreen = True
        if self._curtsies_input is None:
            self._curtsies_input = Input(keynames='curtsies')
            self._curtsies_input.__enter__()

    def cleanup(self):
        """Exit fullscreen mode and restore terminal."""
        if self.is_fullscreen:
            print(self.term.exit_fullscreen)
            print(self.term.normal_cursor)
            self.is_fullscreen = False
        if self._curtsies_input is not None:
            try:
                self._curtsies_input.__exit__(None, None, None)
            except OSError as e:
                logger.warning(f"Could not restore terminal input mode: {e}")
            finally:
                self._curtsies_input = None

    def invalidate_frame(self) -> None:
        """Invalidate cached frame so next update does a full clear."""
        self._last_lines = None
        self._last_status = None
        self._last_left_margin = None
        self._last_view_width = None

    def move_cursor(self, y: int, x: int, left_margin: int = 0):
        """Move the cursor to a position without redrawing the screen."""
        print(self.term.move(y, x + left_margin) + self.term.normal_cursor, end='', flush=True)

    def bell(self) -> None:
        """Ring the terminal bell; a terminal that refuses it is ignored."""
        try:
            sys.stdout.write('\a')
            sys.stdout.flush()
        except OSError:
            pass

    def _compose_display_line(self, line: str, view_width: int,
                              styles: Optional[list[int]] = None) -> str:
        """Compose a display line with bold/underline/dim runs, padded to width."""
        text = line[:view_width].ljust(view_width)
        styles = (styles or [])[:view_width]
        styles = styles + [0] * (view_width - len(styles))

        out = []
        active = 0
        for i, ch in enumerate(text):
            if styles[i] != active:
                # Reset then enable desired to avoid sticky state
                out.append(self.term.normal)
                if styles[i] & STYLE_BOLD:
                    out.append(self.term.bold)
                if styles[i] & STYLE_UNDER:
                    out.append(self.term.underline)
                if styles[i] & STYLE_DIM:
                    out.append(self.term.dim)
                active = styles[i]
            out.append(ch)
        if active:
            out.append(self.term.normal)
        return ''.join(out)

    def update_frame(
        self,
        lines: list[str],
        cursor_y: int,
        cursor_x: int,
        left_margin: int,
        view_width: int,
        status_text: str = "",
        styles_by_line: Optional[list[list[int]]] = None,
        prompt_active: bool = False,
    ) -> None:
        """Diff against last frame and write only changes.

        Falls back to a full clear on first paint or when geometry changes.
        """
        need_full_clear = (
            self._last_lines is None
            or self._last_left_margin != left_margin
            or self._last_view_width != view_width
            or len(self._last_lines) != len(lines)
        )
        if need_full_clear:
            print(self.term.home + self.term.clear, end='')
            self._last_lines = ["" for _ in range(len(lines))]
            self._last_status = None
            self._last_left_margin = left_margin
            self._last_view_width = view_width

        for y, line in enumerate(lines):
            style_line = styles_by_line[y] if styles_by_line and y < len(styles_by_line) else None
            new_disp = self._compose_display_line(line, view_width, styles=style_line)
            if new_disp != self._last_lines[y]:
                print(self.term.move(y, left_margin) + new_disp, end='')
                self._last_lines[y] = new_disp

        status = status_text[:self.term.width].ljust(self.term.width)
        if status != (self._last_status or ""):
            print(self.term.move(self.term.height - 1, 0) + self.term.reverse + status
                  + self.term.normal, end='')
            self._last_status = status

        if prompt_active:
            print(self.term.move(self.term.height - 1, len(status_text.rstrip()))
                  + self.term.normal_cursor, end='', flush=True)
        else:
            print(self.term.move(cursor_y, cursor_x + left_margin) + self.term.normal_cursor,
                  end='', flush=True)

    def draw_popup(self, y: int, x: int, entries: list[str], highlight: int) -> None:
        """Draw the command popup over the document.

        Rows it covers are repainted on the next frame.
        """
        width = max(len(entry) for entry in entries) + 2
        for i, entry in enumerate(entries):
            row = y + i
            if row >= self.term.height - 1:
                break
            text = f" {entry}".ljust(width)
            style = self.term.reverse if i == highlight else self.term.normal
            print(self.term.move(row, x) + style + text + self.term.normal, end='')
            if self._last_lines is not None and 0 <= row < len(self._last_lines):
                self._last_lines[row] = ""
        print('', end='', flush=True)

    def draw_error_message(self, message1: str, message2: str = ""):
        """Draw an error message in the center of the screen."""
        print(self.term.home + self.term.clear, end='')
        center_y = self.term.height // 2
        box_width = min(self.term.width, max(len(message1), len(message2)) + 4)
        left_margin = max(0, (self.term.width - box_width) // 2)

        print(self.term.move(center_y - 2, left_margin) + "╔" + "═" * (box_width - 2) + "╗", end='')
        print(self.term.move(center_y - 1, left_margin) + "║ " + message1.center(box_width - 4) + " ║", end='')
        if message2:
            print(self.term.move(center_y, left_margin) + "║ " + message2.center(box_width - 4) + " ║", end='')
            print(self.term.move(center_y + 1, left_margin) + "╚" + "═" * (box_width - 2) + "╝", end='')
        else:
            print(self.term.move(center_y, left_margin) + "╚" + "═" * (box_width - 2) + "╝", end='')

        help_text = "Ctrl-Q to quit | Resize terminal to continue"
        help_pos = max(0, (self.term.width - len(help_text)) // 2)
        print(self.term.move(self.term.height - 1, help_pos) + help_text, end='', flush=True)
        self.invalidate_frame()

    def get_key(self, timeout=None):
        """Get a single keypress from the user.

        Args:
            timeout: Timeout in seconds (None for blocking, 0 for non-blocking)

        Returns:
            The curtsies key name, or None on timeout.
        """
        if self._curtsies_input is None:
            return None
        if timeout is not None:
            r, _, _ = select.select([sys.stdin], [], [], float(timeout))
            if not r:
                return None
        event = next(self._curtsies_input)
        if event is None:
            return None
        # Paste events carry their keys; hand them over as one string
        events = getattr(event, 'events', None)
        if events is not None:
            return ''.join(e if len(e) == 1 else ('\n' if e in ('<Ctrl-j>', '<Ctrl-m>') else '')
                           for e in events)
        return str(event)

    @property
    def width(self):
        """Terminal width in columns."""
        return self.term.width

    @property
    def height(self):
        """Terminal height in rows (excluding status line)."""
        return self.term.height - 1  # Reserve one line for status
