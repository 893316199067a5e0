"""Textual front-end driving the same engine as the terminal editor."""

from typing import Optional

from rich.style import Style
from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widget import Widget
from textual.widgets import Footer, Header

from .commands import CommandRegistry
from .constants import EditorConstants
from .engine import SyncEngine, create_state
from .export import ExportError, default_filename, write_export
from .keyboard import KeyEvent, KeyType
from .storage import LocalStore
from .timer import TimerRuntime
from .view import STYLE_BOLD, STYLE_DIM, STYLE_UNDER, DocumentView

_SPECIAL_KEYS = {
    "left", "right", "up", "down", "home", "end", "enter", "backspace", "delete",
    "tab", "escape", "f1",
}
_RENAMED_KEYS = {"pageup": "page_up", "pagedown": "page_down"}


def key_event_from_textual(key: str, character: Optional[str]) -> Optional[KeyEvent]:
    """Translate a Textual key name into the editor's KeyEvent."""
    parts = key.split("+")
    base = _RENAMED_KEYS.get(parts[-1], parts[-1])
    mods = set(parts[:-1])
    if "ctrl" in mods and len(base) == 1:
        return KeyEvent(key_type=KeyType.CTRL, value=base, raw=key, is_ctrl=True)
    if "alt" in mods:
        return KeyEvent(key_type=KeyType.ALT, value=base, raw=key, is_alt=True)
    if "shift" in mods and base in _SPECIAL_KEYS:
        return KeyEvent(key_type=KeyType.SHIFT_SPECIAL, value=base, raw=key, is_shift=True)
    if base in _SPECIAL_KEYS or base in _RENAMED_KEYS.values():
        return KeyEvent(key_type=KeyType.SPECIAL, value=base, raw=key)
    if character and character.isprintable():
        return KeyEvent(key_type=KeyType.REGULAR, value=character, raw=character)
    return None


class DocumentWidget(Widget, can_focus=True):
    """Draws the surface and feeds keys and clicks to the command registry."""

    def __init__(self, editor: "EzwriteApp"):
        super().__init__()
        self.editor = editor
        self.doc_view = DocumentView()

    def render(self) -> Text:
        editor = self.editor
        width = max(EditorConstants.MIN_TERMINAL_WIDTH,
                    min(EditorConstants.DOCUMENT_WIDTH, self.size.width or EditorConstants.DOCUMENT_WIDTH))
        editor.engine.set_width(width)
        self.doc_view.num_columns = width
        self.doc_view.num_rows = max(1, self.size.height)
        self.doc_view.layout(editor.state.surface, editor.state.point, editor.state.timers)

        text = Text()
        for y, row in enumerate(self.doc_view.visible_rows()):
            line = row.text.ljust(width)
            for x, ch in enumerate(line):
                flags = row.styles[x] if x < len(row.styles) else 0
                style = Style(bold=bool(flags & STYLE_BOLD), underline=bool(flags & STYLE_UNDER),
                              dim=bool(flags & STYLE_DIM),
                              reverse=(y == self.doc_view.visual_cursor_y
                                       and x == self.doc_view.visual_cursor_x))
                text.append(ch, style)
            text.append("\n")
        return text

    def on_key(self, event: events.Key) -> None:
        key_event = key_event_from_textual(event.key, event.character)
        if key_event is None:
            return
        event.stop()
        event.prevent_default()
        self.editor.handle_key_event(key_event)
        self.refresh()

    def on_click(self, event: events.Click) -> None:
        hit = self.doc_view.hit_test(event.y, event.x)
        if hit is None:
            return
        self.editor.engine.click(*hit)
        self.refresh()


class EzwriteApp(App):
    """Textual app over the structured-line engine."""

    CSS = """
    DocumentWidget {
        background: $surface;
        padding: 0 2;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, store: Optional[LocalStore] = None):
        super().__init__()
        self.state = create_state(store or LocalStore(),
                                  on_timer_complete=self._timer_completed)
        self.engine = SyncEngine(self.state)
        self.command_registry = CommandRegistry()
        self.running = True
        self.document: Optional[DocumentWidget] = None

    @property
    def status_message(self) -> Optional[str]:
        return self.state.status_message

    @status_message.setter
    def status_message(self, message: Optional[str]) -> None:
        self.state.status_message = message
        if message:
            self.notify(message)

    def compose(self) -> ComposeResult:
        yield Header()
        self.document = DocumentWidget(self)
        yield self.document
        yield Footer()

    def on_mount(self) -> None:
        self._update_title()
        self.set_interval(EditorConstants.TIMER_RESYNC_INTERVAL, self._tick)
        self.document.focus()

    def _update_title(self) -> None:
        self.sub_title = f"Page {self.state.active_page + 1}/{EditorConstants.PAGE_COUNT}"

    def _tick(self) -> None:
        for board in self.state.timer_boards:
            board.tick_all()
        if self.document is not None and self.state.timers.any_running():
            self.document.refresh()

    def _timer_completed(self, runtime: TimerRuntime) -> None:
        self.status_message = f"{runtime.label.capitalize()} timer done"
        self.bell()

    def handle_key_event(self, key_event: KeyEvent) -> None:
        self.state.status_message = None
        self.command_registry.execute(self, key_event)
        self._update_title()
        if not self.running:
            self.exit()

    def show_help(self) -> None:
        self.notify("/ menu · Alt-1..5 pages · Ctrl-X check · Ctrl-Z/Y undo/redo · "
                    "Ctrl-S export · Ctrl-Q quit", timeout=8)

    def start_export(self) -> None:
        """Export the active page as Markdown under the default name."""
        try:
            written = write_export(self.state.lines, "md", default_filename("md"))
        except ExportError as e:
            self.notify(str(e), severity="error")
            return
        self.notify(f"Exported to {written}")


def main():
    """Run the Textual app."""
    app = EzwriteApp()
    app.run()


if __name__ == "__main__":
    main()
