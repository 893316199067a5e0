"""ezwrite - structured plain-text writing with checklists, dividers and timers."""

from .classifier import LineType, classify, classify_all
from .cursor import CursorPosition
from .engine import EditorState, SyncEngine, create_state, switch_page

__all__ = [
    'LineType',
    'classify',
    'classify_all',
    'CursorPosition',
    'EditorState',
    'SyncEngine',
    'create_state',
    'switch_page',
]
