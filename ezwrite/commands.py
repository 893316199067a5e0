"""Command pattern implementation for editor actions."""

from abc import ABC, abstractmethod
from typing import Dict, Tuple, Optional, TYPE_CHECKING

from .constants import EditorConstants
from .keyboard import KeyType

if TYPE_CHECKING:
    from .editor import Editor
    from .keyboard import KeyEvent


class EditorCommand(ABC):
    """Base class for editor commands."""

    @abstractmethod
    def execute(self, editor: 'Editor', key_event: 'KeyEvent') -> bool:
        """Execute the command.

        Args:
            editor: Editor instance
            key_event: The key event that triggered this command

        Returns:
            True if the command modified the document
        """
        pass


class MovementCommand(EditorCommand):
    """Cursor movement; never modifies the document."""

    direction = ""

    def execute(self, editor: 'Editor', key_event: 'KeyEvent') -> bool:
        editor.engine.move_cursor(self.direction)
        return False


class LeftCharCommand(MovementCommand):
    direction = "left"


class RightCharCommand(MovementCommand):
    direction = "right"


class BeginningOfLineCommand(MovementCommand):
    direction = "home"


class EndOfLineCommand(MovementCommand):
    direction = "end"


class DocumentStartCommand(MovementCommand):
    direction = "document_start"


class DocumentEndCommand(MovementCommand):
    direction = "document_end"


class UpLineCommand(MovementCommand):
    direction = "up"

    def execute(self, editor, key_event):
        # Arrows drive the popup highlight while it is open
        if editor.state.slash.active:
            editor.state.slash.move(-1)
            return False
        return super().execute(editor, key_event)


class DownLineCommand(MovementCommand):
    direction = "down"

    def execute(self, editor, key_event):
        if editor.state.slash.active:
            editor.state.slash.move(1)
            return False
        return super().execute(editor, key_event)


class EditCommand(EditorCommand):
    """Base class for editing commands. Returns what the engine reports."""

    def execute(self, editor: 'Editor', key_event: 'KeyEvent') -> bool:
        return bool(self._edit(editor, key_event))

    @abstractmethod
    def _edit(self, editor: 'Editor', key_event: 'KeyEvent') -> bool:
        """Perform the edit."""
        pass


class BackspaceCommand(EditCommand):
    def _edit(self, editor, key_event):
        return editor.engine.backspace()


class DeleteCharCommand(EditCommand):
    def _edit(self, editor, key_event):
        return editor.engine.delete_forward()


class InsertNewlineCommand(EditCommand):
    def _edit(self, editor, key_event):
        slash = editor.state.slash
        if slash.active:
            return editor.engine.commit_slash(slash.highlighted().name)
        return editor.engine.enter()


class InsertTextCommand(EditCommand):
    def _edit(self, editor, key_event):
        text = key_event.value
        slash = editor.state.slash
        if slash.active and text.isdigit() and len(text) == 1:
            command = slash.select_number(int(text))
            if command is not None:
                return editor.engine.commit_slash(command.name)
        # Filter out control characters
        text = ''.join(ch for ch in text if ord(ch) >= 32 or ch == '\n')
        if not text:
            return False
        return editor.engine.insert_text(text)


class MoveLineUpCommand(EditCommand):
    def _edit(self, editor, key_event):
        return editor.engine.move_line(-1)


class MoveLineDownCommand(EditCommand):
    def _edit(self, editor, key_event):
        return editor.engine.move_line(1)


class ToggleStrikeCommand(EditCommand):
    def _edit(self, editor, key_event):
        if not editor.engine.toggle_strike():
            editor.status_message = "Not a list item"
            return False
        return True


class DeleteLineCommand(EditCommand):
    def _edit(self, editor, key_event):
        return editor.engine.delete_line()


class IndentCommand(EditCommand):
    def _edit(self, editor, key_event):
        return editor.engine.indent()


class UnindentCommand(EditCommand):
    def _edit(self, editor, key_event):
        return editor.engine.unindent()


class EscapeCommand(EditCommand):
    """Close the popup, or abandon a timer directive being typed."""

    def _edit(self, editor, key_event):
        if editor.state.slash.active:
            editor.state.slash.dismiss()
            return False
        return editor.engine.cancel_timer()


class SystemCommand(EditorCommand):
    """Base class for system commands like quit, export, undo."""

    def execute(self, editor: 'Editor', key_event: 'KeyEvent') -> bool:
        self._execute_system(editor, key_event)
        return False

    @abstractmethod
    def _execute_system(self, editor: 'Editor', key_event: 'KeyEvent'):
        """Perform the system action."""
        pass


class QuitCommand(SystemCommand):
    def _execute_system(self, editor, key_event):
        editor.running = False


class ExportCommand(SystemCommand):
    def _execute_system(self, editor, key_event):
        editor.start_export()


class HelpCommand(SystemCommand):
    def _execute_system(self, editor, key_event):
        editor.show_help()


class ToggleTimerCommand(SystemCommand):
    def _execute_system(self, editor, key_event):
        if not editor.engine.toggle_timer():
            editor.status_message = "No timer on this line"


class UndoCommand(SystemCommand):
    def _execute_system(self, editor, key_event):
        if editor.engine.undo():
            editor.status_message = "Undone"
        else:
            editor.status_message = "Nothing to undo"


class RedoCommand(SystemCommand):
    def _execute_system(self, editor, key_event):
        if editor.engine.redo():
            editor.status_message = "Redone"
        else:
            editor.status_message = "Nothing to redo"


class SwitchPageCommand(SystemCommand):
    """Alt-1..5 jump to a page; Alt-Left/Right step through pages."""

    def __init__(self, index: Optional[int] = None, delta: int = 0):
        self.index = index
        self.delta = delta

    def _execute_system(self, editor, key_event):
        current = editor.state.active_page
        target = self.index if self.index is not None else current + self.delta
        target %= EditorConstants.PAGE_COUNT
        if editor.engine.switch_page(target):
            editor.status_message = f"Page {target + 1}"


class CommandRegistry:
    """Registry for mapping key combinations to commands."""

    def __init__(self):
        self._commands: Dict[Tuple[KeyType, str], EditorCommand] = {}
        self._setup_default_commands()

    def _setup_default_commands(self):
        """Set up the default command mappings."""
        # Movement commands
        self.register((KeyType.SPECIAL, 'left'), LeftCharCommand())
        self.register((KeyType.SPECIAL, 'right'), RightCharCommand())
        self.register((KeyType.SPECIAL, 'up'), UpLineCommand())
        self.register((KeyType.SPECIAL, 'down'), DownLineCommand())
        self.register((KeyType.SPECIAL, 'home'), BeginningOfLineCommand())
        self.register((KeyType.SPECIAL, 'end'), EndOfLineCommand())
        self.register((KeyType.CTRL, 'a'), BeginningOfLineCommand())
        self.register((KeyType.CTRL, 'e'), EndOfLineCommand())
        self.register((KeyType.SPECIAL, 'page_up'), DocumentStartCommand())
        self.register((KeyType.SPECIAL, 'page_down'), DocumentEndCommand())

        # Editing commands
        self.register((KeyType.SPECIAL, 'backspace'), BackspaceCommand())
        self.register((KeyType.SPECIAL, 'delete'), DeleteCharCommand())
        self.register((KeyType.CTRL, 'd'), DeleteCharCommand())
        self.register((KeyType.SPECIAL, 'enter'), InsertNewlineCommand())
        self.register((KeyType.SPECIAL, 'escape'), EscapeCommand())
        self.register((KeyType.SPECIAL, 'tab'), IndentCommand())
        self.register((KeyType.SHIFT_SPECIAL, 'tab'), UnindentCommand())
        self.register((KeyType.ALT, 'up'), MoveLineUpCommand())
        self.register((KeyType.ALT, 'down'), MoveLineDownCommand())
        self.register((KeyType.CTRL, 'x'), ToggleStrikeCommand())
        self.register((KeyType.CTRL, 'k'), DeleteLineCommand())
        self.register((KeyType.CTRL, 't'), ToggleTimerCommand())

        # Undo/redo
        self.register((KeyType.CTRL, 'z'), UndoCommand())
        self.register((KeyType.CTRL, 'y'), RedoCommand())

        # Pages
        for i in range(EditorConstants.PAGE_COUNT):
            self.register((KeyType.ALT, str(i + 1)), SwitchPageCommand(index=i))
        self.register((KeyType.ALT, 'left'), SwitchPageCommand(delta=-1))
        self.register((KeyType.ALT, 'right'), SwitchPageCommand(delta=1))

        # System commands
        self.register((KeyType.CTRL, 'q'), QuitCommand())
        self.register((KeyType.CTRL, 's'), ExportCommand())
        self.register((KeyType.SPECIAL, 'f1'), HelpCommand())

    def register(self, key: Tuple[KeyType, str], command: EditorCommand):
        """Register a command for a key combination."""
        self._commands[key] = command

    def get_command(self, key_type: KeyType, value: str) -> Optional[EditorCommand]:
        return self._commands.get((key_type, value))

    def execute(self, editor: 'Editor', key_event: 'KeyEvent') -> bool:
        """Execute the command for the given key event.

        Returns:
            True if the document was modified
        """
        if key_event.is_alt:
            command = self.get_command(KeyType.ALT, key_event.value)
        else:
            command = self.get_command(key_event.key_type, key_event.value)

        if command:
            return command.execute(editor, key_event)

        if key_event.key_type == KeyType.REGULAR:
            return InsertTextCommand().execute(editor, key_event)

        return False
