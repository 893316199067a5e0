import time
from typing import Callable, Optional

from .constants import EditorConstants


class UndoHistory:
    """Snapshot history over the full document text.

    Each entry is the document as it was before an edit. Pushes arriving
    within the debounce window of the previous one are dropped, so a burst of
    keystrokes undoes as a single step.
    """

    def __init__(self, max_entries: int = EditorConstants.HISTORY_LIMIT,
                 debounce: float = EditorConstants.HISTORY_DEBOUNCE,
                 clock: Callable[[], float] = time.monotonic):
        self._undo_stack: list[str] = []
        self._redo_stack: list[str] = []
        self._max_entries = max_entries
        self._debounce = debounce
        self._clock = clock
        self._last_push: Optional[float] = None

    def clear(self):
        self._undo_stack.clear()
        self._redo_stack.clear()
        self._last_push = None

    def push(self, snapshot: str, force: bool = False) -> bool:
        now = self._clock()
        if not force and self._last_push is not None and now - self._last_push < self._debounce:
            return False
        self._undo_stack.append(snapshot)
        # Cap history
        if len(self._undo_stack) > self._max_entries:
            self._undo_stack.pop(0)
        # Any new edit invalidates redo history
        self._redo_stack.clear()
        self._last_push = now
        return True

    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    def undo(self, current: str) -> Optional[str]:
        """Return the snapshot to restore, or None if there is nothing to undo."""
        if not self._undo_stack:
            return None
        snapshot = self._undo_stack.pop()
        self._redo_stack.append(current)
        # The next edit must be recorded so it can branch off this point
        self._last_push = None
        return snapshot

    def redo(self, current: str) -> Optional[str]:
        if not self._redo_stack:
            return None
        snapshot = self._redo_stack.pop()
        self._undo_stack.append(current)
        self._last_push = None
        return snapshot

    def __len__(self) -> int:
        return len(self._undo_stack)
