"""Main editor controller for the terminal front-end."""

import logging
import os
import select
import signal
import sys
import termios
import time
from typing import Optional

from .commands import CommandRegistry
from .constants import EditorConstants
from .engine import SyncEngine, create_state
from .export import EXPORT_FORMATS, ExportError, default_filename, write_export
from .keyboard import KeyboardHandler, KeyEvent, KeyType
from .storage import LocalStore
from .terminal import TerminalInterface
from .timer import TimerRuntime
from .view import DocumentView

logger = logging.getLogger(__name__)

HELP_LINES = [
    "",
    "WRITING                          PAGES",
    "  /          Command menu         Alt-1..5   Go to page",
    "  list       Start a checklist    Alt-←/→    Previous/next page",
    "  line       Divider",
    "  timer ...  Timer (5, 9:30,      EDITING",
    "             pomo, 25 5)          Tab        Indent",
    "  # / ##     Headings             Shift-Tab  Unindent",
    "  **bold**   Bold                 Alt-↑/↓    Move line",
    "                                  Ctrl-X     Check list item",
    "                                  Ctrl-K     Delete line",
    "TIMERS                            Ctrl-Z/Y   Undo/redo",
    "  timer p    Pause/resume above",
    "  timer r    Restart above        Ctrl-S     Export",
    "  timer s    Stop above           Ctrl-Q     Quit",
    "  Ctrl-T     Pause/resume here    F1         Help",
]


class Editor:
    """Terminal writing application controller."""

    def __init__(self, store: Optional[LocalStore] = None, page: Optional[int] = None):
        self.terminal = TerminalInterface()
        self.keyboard = KeyboardHandler(self.terminal)
        self.view = DocumentView(num_rows=self.terminal.height)
        self.state = create_state(store or LocalStore(),
                                  on_timer_complete=self._timer_completed)
        self.engine = SyncEngine(self.state)
        if page is not None:
            self.engine.switch_page(page)
        self.command_registry = CommandRegistry()
        self.running = False
        self.error_mode = False  # True when terminal is too narrow
        # Signals wake select() through this pipe
        self._signal_pipe_r, self._signal_pipe_w = os.pipe()
        self.prompt_mode = None  # None, 'export_format' or 'export_filename'
        self.prompt_input = ""
        self.export_format: Optional[str] = None
        self.help_visible = False
        self.last_keypress: Optional[float] = None

    @property
    def status_message(self) -> Optional[str]:
        return self.state.status_message

    @status_message.setter
    def status_message(self, message: Optional[str]) -> None:
        self.state.status_message = message

    # --- Signals ---------------------------------------------------------

    def _handle_resize(self, signum, frame):
        del signum, frame  # Unused
        os.write(self._signal_pipe_w, EditorConstants.RESIZE_PIPE_MARKER)

    def _handle_continue(self, signum, frame):
        del signum, frame  # Unused
        os.write(self._signal_pipe_w, EditorConstants.CONTINUE_PIPE_MARKER)

    def _handle_sigint(self, signum, frame):
        del signum, frame  # Unused
        os.write(self._signal_pipe_w, EditorConstants.INTERRUPT_PIPE_MARKER)

    def _process_signal_bytes(self, data: bytes) -> None:
        if EditorConstants.INTERRUPT_PIPE_MARKER in data:
            # Everything is already saved; Ctrl-C just quits
            self.running = False
            return
        if EditorConstants.CONTINUE_PIPE_MARKER in data:
            # Back from a suspend: timers re-sync from the clock
            self.tick_timers()
        self.terminal.invalidate_frame()

    # --- Timers ----------------------------------------------------------

    def _timer_completed(self, runtime: TimerRuntime) -> None:
        self.status_message = f"{runtime.label.capitalize()} timer done"
        self.terminal.bell()

    def tick_timers(self) -> None:
        """Re-sync every page's timers, so finished timers on other pages still ring."""
        for board in self.state.timer_boards:
            board.tick_all()

    @property
    def typing(self) -> bool:
        return (self.last_keypress is not None and
                time.monotonic() - self.last_keypress < EditorConstants.TYPING_INDICATOR_TIMEOUT)

    def _select_timeout(self) -> Optional[float]:
        if any(board.any_running() for board in self.state.timer_boards):
            return EditorConstants.TIMER_RESYNC_INTERVAL
        if self.typing:
            return EditorConstants.TYPING_INDICATOR_TIMEOUT
        return None

    # --- Main loop -------------------------------------------------------

    def run(self):
        """Run the main editor loop."""
        self.terminal.setup()
        self.running = True

        original_winch_handler = signal.signal(signal.SIGWINCH, self._handle_resize)
        original_cont_handler = signal.signal(signal.SIGCONT, self._handle_continue)
        original_int_handler = signal.signal(signal.SIGINT, self._handle_sigint)

        try:
            with self.terminal.term.cbreak():
                old_settings = None
                try:
                    old_settings = termios.tcgetattr(sys.stdin)
                    new_settings = list(old_settings)
                    # Disable IXON/IXOFF so Ctrl-S and Ctrl-Q reach the editor
                    new_settings[0] &= ~(termios.IXON | termios.IXOFF)
                    termios.tcsetattr(sys.stdin, termios.TCSANOW, new_settings)
                except (termios.error, OSError) as e:
                    logger.debug(f"Could not adjust terminal flow control: {e}")

                need_draw = True
                while self.running:
                    if need_draw:
                        self._draw_screen()
                        need_draw = False

                    ready, _, _ = select.select([0, self._signal_pipe_r], [], [],
                                                self._select_timeout())
                    if not ready:
                        self.tick_timers()
                        need_draw = True
                        continue

                    if self._signal_pipe_r in ready:
                        data = os.read(self._signal_pipe_r, 1024)
                        self._process_signal_bytes(data)
                        need_draw = True
                    if 0 in ready and self.running:
                        key_event = self.keyboard.get_key_event(timeout=0)
                        if key_event:
                            self.last_keypress = time.monotonic()
                            self._handle_key_event(key_event)
                            need_draw = True

                if old_settings:
                    try:
                        termios.tcsetattr(sys.stdin, termios.TCSANOW, old_settings)
                    except (termios.error, OSError):
                        pass
        finally:
            signal.signal(signal.SIGWINCH, original_winch_handler)
            signal.signal(signal.SIGCONT, original_cont_handler)
            signal.signal(signal.SIGINT, original_int_handler)
            os.close(self._signal_pipe_r)
            os.close(self._signal_pipe_w)
            self.terminal.cleanup()

    # --- Drawing ---------------------------------------------------------

    def _draw_screen(self) -> None:
        if self.terminal.width < EditorConstants.MIN_TERMINAL_WIDTH:
            self.error_mode = True
            self._draw_error()
            return
        self.error_mode = False
        if self.help_visible:
            self._draw_help()
            return
        self._draw()

    def status_text(self) -> str:
        """Status bar: page, typing indicator and message or prompt."""
        if self.prompt_mode == 'export_format':
            return " Export as (t)xt, (m)arkdown or (p)df? "
        if self.prompt_mode == 'export_filename':
            return f" Export to: {self.prompt_input}"
        dot = "●" if self.typing else " "
        left = f" Page {self.state.active_page + 1}/{EditorConstants.PAGE_COUNT} {dot}"
        if self.status_message:
            return f"{left} {self.status_message}"
        help_text = "F1 for help "
        padding = max(1, self.terminal.width - len(left) - len(help_text))
        return left + " " * padding + help_text

    def _draw(self) -> None:
        view_width = min(EditorConstants.DOCUMENT_WIDTH, self.terminal.width)
        left_margin = (self.terminal.width - view_width) // 2
        self.engine.set_width(view_width)
        self.view.num_rows = self.terminal.height
        self.view.num_columns = view_width
        self.view.layout(self.state.surface, self.state.point, self.state.timers)
        rows = self.view.visible_rows()
        self.terminal.update_frame(
            [row.text for row in rows],
            self.view.visual_cursor_y,
            self.view.visual_cursor_x,
            left_margin=left_margin,
            view_width=view_width,
            status_text=self.status_text(),
            styles_by_line=[row.styles for row in rows],
            prompt_active=self.prompt_mode is not None,
        )
        slash = self.state.slash
        if slash.active and self.prompt_mode is None:
            entries = [f"{i + 1}. {cmd.name:<6} {cmd.description}"
                       for i, cmd in enumerate(slash.matches)]
            entries = [entry[:EditorConstants.POPUP_MAX_WIDTH] for entry in entries]
            y = self.view.visual_cursor_y + 1
            if y + len(entries) > self.terminal.height:
                y = max(0, self.view.visual_cursor_y - len(entries))
            self.terminal.draw_popup(y, left_margin + self.view.visual_cursor_x, entries,
                                     slash.highlight)
            self.terminal.move_cursor(self.view.visual_cursor_y, self.view.visual_cursor_x,
                                      left_margin)

    def _draw_error(self):
        """Draw error message when terminal is too narrow."""
        self.terminal.draw_error_message(
            EditorConstants.TERMINAL_TOO_NARROW_MESSAGE.format(EditorConstants.MIN_TERMINAL_WIDTH),
            EditorConstants.CURRENT_WIDTH_MESSAGE.format(self.terminal.width)
        )

    def _draw_help(self):
        """Draw the help screen."""
        term = self.terminal.term
        print(term.clear(), end='')
        title = "EZWRITE HELP"
        width = int(term.width)
        print(f"{term.move(1, max(0, (width - len(title)) // 2))}{term.bold}{title}{term.normal}",
              end='')
        content_start_y = max(3, (int(term.height) - len(HELP_LINES)) // 2)
        max_line_length = max(len(line) for line in HELP_LINES)
        left_margin = max(0, (width - max_line_length) // 2)
        for i, line in enumerate(HELP_LINES):
            print(f"{term.move(content_start_y + i, left_margin)}{line}", end='')
        print(f"{term.move(term.height - 1, 0)} Press any key to continue", end='')
        print(term.hide_cursor, end='', flush=True)
        self.terminal.invalidate_frame()

    def show_help(self):
        self.help_visible = True

    def hide_help(self):
        self.help_visible = False
        self.terminal.invalidate_frame()

    # --- Input -----------------------------------------------------------

    def _handle_key_event(self, key_event: KeyEvent):
        """Handle a keyboard event."""
        if self.help_visible:
            self.hide_help()
            return

        # Clear status message on any keypress (except in prompt mode)
        if self.status_message and not self.prompt_mode:
            self.status_message = None

        if self._handle_prompt_mode(key_event):
            return

        if self.error_mode:
            if key_event.key_type == KeyType.CTRL and key_event.value == 'q':
                self.running = False
            return

        self.command_registry.execute(self, key_event)

    def _handle_prompt_mode(self, key_event: KeyEvent) -> bool:
        """Handle input in prompt mode.

        Returns:
            True if in prompt mode and event was handled
        """
        if self.prompt_mode == 'export_format':
            self._handle_format_prompt(key_event)
            return True
        if self.prompt_mode == 'export_filename':
            self._handle_filename_prompt(key_event)
            return True
        return False

    def start_export(self) -> None:
        self.prompt_mode = 'export_format'
        self.prompt_input = ""

    def _cancel_prompt(self, message: str = "Export cancelled") -> None:
        self.prompt_mode = None
        self.prompt_input = ""
        self.export_format = None
        self.status_message = message

    def _handle_format_prompt(self, key_event: KeyEvent) -> None:
        choices = {'t': 'txt', 'm': 'md', 'p': 'pdf'}
        if key_event.key_type == KeyType.REGULAR and key_event.value.lower() in choices:
            self.export_format = choices[key_event.value.lower()]
            self.prompt_mode = 'export_filename'
            self.prompt_input = default_filename(self.export_format)
        else:
            self._cancel_prompt()

    def _handle_filename_prompt(self, key_event: KeyEvent) -> None:
        if (key_event.key_type == KeyType.SPECIAL and key_event.value == 'escape') or \
           (key_event.key_type == KeyType.CTRL and key_event.value == 'g'):
            self._cancel_prompt()
        elif key_event.key_type == KeyType.SPECIAL and key_event.value == 'enter':
            if self.prompt_input:
                self.export(self.export_format, self.prompt_input)
            self.prompt_mode = None
            self.prompt_input = ""
            self.export_format = None
        elif key_event.key_type == KeyType.SPECIAL and key_event.value == 'backspace':
            self.prompt_input = self.prompt_input[:-1]
        elif key_event.key_type == KeyType.REGULAR:
            self.prompt_input += ''.join(ch for ch in key_event.value if ord(ch) >= 32)

    def export(self, fmt: str, path: str) -> bool:
        """Export the active page; reports the outcome in the status bar."""
        if fmt not in EXPORT_FORMATS:
            self.status_message = f"Unknown format: {fmt}"
            return False
        try:
            written = write_export(self.state.lines, fmt, path)
        except ExportError as e:
            self.status_message = f"✗ {e}"
            return False
        self.status_message = f"✓ Exported to {written}"
        return True
