"""Structural sync engine: keeps the line array and the surface in step.

Every edit takes one of two paths:

* The direct path edits the surface in place (a typed or deleted character
  inside one line), reads the line array back out of it and re-classifies.
  When no line changed type, only the edited block is re-rendered.
* The structural path computes the new line array explicitly (Enter, joins,
  reordering, commands, toggles), rebuilds the whole surface from it and
  places the cursor on an explicitly computed target.

A direct edit that changes any line's type is escalated to the structural
path, with the cursor recovered from the edited surface.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from .classifier import LineType, classify_all, timer_args
from .constants import EditorConstants
from .cursor import (CursorPosition, SurfacePoint, clamp_position, from_surface,
                     point_at_column, to_surface)
from .history import UndoHistory
from .pages import PageStore
from .slash import SlashCommandController
from .storage import LocalStore
from .strike import STRUCK_MARKER, clean, is_struck, strip_markers, toggle
from .surface import (Segment, SegmentRole, Surface, extract_lines, render_document,
                      render_line)
from .timer import CONTROL_TOKENS, TimerBoard, TimerRuntime

logger = logging.getLogger(__name__)

_KEYWORD_TYPES = (LineType.LIST_HEADER, LineType.DIVIDER)


class EditKind(Enum):
    DIRECT = "direct"
    STRUCTURAL = "structural"


@dataclass
class EditorState:
    """Everything the engine reads and writes. Passed explicitly, never global."""
    pages: PageStore
    timer_boards: list[TimerBoard]
    history: UndoHistory = field(default_factory=UndoHistory)
    slash: SlashCommandController = field(default_factory=SlashCommandController)
    lines: list[str] = field(default_factory=lambda: [""])
    types: list[LineType] = field(default_factory=lambda: [LineType.TEXT])
    surface: Surface = field(default_factory=Surface)
    cursor: CursorPosition = field(default_factory=CursorPosition)
    point: SurfacePoint = field(default_factory=SurfacePoint)
    timer_edit_line: Optional[int] = None
    keyword_edit_line: Optional[int] = None  # Typed list or line, not yet converted
    desired_offset: int = 0
    modified: bool = False
    status_message: Optional[str] = None
    width: int = EditorConstants.DOCUMENT_WIDTH

    @property
    def text(self) -> str:
        return EditorConstants.LINE_SEPARATOR.join(self.lines)

    @property
    def timers(self) -> TimerBoard:
        return self.timer_boards[self.pages.active]

    @property
    def active_page(self) -> int:
        return self.pages.active


def create_state(store: LocalStore, clock: Callable[[], float] = time.time,
                 on_timer_complete: Optional[Callable[[TimerRuntime], None]] = None,
                 history: Optional[UndoHistory] = None) -> EditorState:
    """Load the page store and build a state showing the active page."""
    pages = PageStore(store)
    pages.load()
    boards = [TimerBoard(clock=clock, on_complete=on_timer_complete)
              for _ in range(pages.page_count)]
    state = EditorState(pages=pages, timer_boards=boards,
                        history=history if history is not None else UndoHistory())
    lines = split_text(pages.current_text)
    rebuild(state, lines, end_of_document(lines))
    return state


def split_text(text: str) -> list[str]:
    return text.split(EditorConstants.LINE_SEPARATOR) if text else [""]


def end_of_document(lines: list[str]) -> CursorPosition:
    # Offsets past the end clamp to end of line
    return CursorPosition(len(lines) - 1, len(clean(lines[-1])))


def editing_lines(state: EditorState) -> set[int]:
    """Directive lines currently rendered as editable text."""
    return {i for i in (state.timer_edit_line, state.keyword_edit_line) if i is not None}


def place_cursor(state: EditorState, target: CursorPosition) -> None:
    state.cursor = clamp_position(state.surface, target)
    state.point = to_surface(state.surface, state.cursor)
    state.desired_offset = state.cursor.character_index


def rebuild(state: EditorState, lines: list[str], target: CursorPosition) -> None:
    """Regenerate the entire surface from ``lines`` and place the cursor."""
    state.lines = list(lines) or [""]
    state.types = classify_all(state.lines)
    edit_line = state.timer_edit_line
    if edit_line is not None and (edit_line >= len(state.lines)
                                  or state.types[edit_line] != LineType.TIMER):
        state.timer_edit_line = None
    keyword_line = state.keyword_edit_line
    if keyword_line is not None and (keyword_line != target.line_index
                                     or keyword_line >= len(state.lines)
                                     or state.types[keyword_line] not in _KEYWORD_TYPES):
        # Settled once the cursor is elsewhere or the word no longer matches
        state.keyword_edit_line = None
    state.surface = render_document(state.lines, state.types,
                                    editing_lines=editing_lines(state),
                                    width=state.width)
    place_cursor(state, target)
    state.timers.sync(state.lines, state.types, skip_line=state.timer_edit_line)


def persist(state: EditorState) -> bool:
    state.pages.set_current(state.text)
    state.modified = True
    return state.pages.save()


def switch_page(state: EditorState, index: int) -> bool:
    """Make another page active.

    The outgoing page's text is kept, per-page transient state (timer
    editing, the slash popup, undo history) is dropped and the cursor goes
    to the end of the incoming page. Timers keep running on their own page.
    """
    if not state.pages.switch_to(index, state.text):
        return False
    state.timer_edit_line = None
    state.keyword_edit_line = None
    state.slash.reset()
    state.history.clear()
    lines = split_text(state.pages.current_text)
    rebuild(state, lines, end_of_document(lines))
    return True


def _raw_offset(line: str, offset: int) -> int:
    """Index into the raw line for an offset into its visible text."""
    return offset + (len(STRUCK_MARKER) if is_struck(line) else 0)


def _insert_at(surface: Surface, point: SurfacePoint, text: str) -> None:
    segment = surface.blocks[point.block_index].segments[point.segment_index]
    segment.text = segment.text[:point.offset] + text + segment.text[point.offset:]
    point.offset += len(text)


def _editable_before(segments: list[Segment], index: int) -> Optional[int]:
    for i in range(index - 1, -1, -1):
        if segments[i].editable and segments[i].text:
            return i
    return None


def _editable_after(segments: list[Segment], index: int) -> Optional[int]:
    for i in range(index + 1, len(segments)):
        if segments[i].editable and segments[i].text:
            return i
    return None


def _delete_before(surface: Surface, point: SurfacePoint) -> None:
    segments = surface.blocks[point.block_index].segments
    if point.offset == 0:
        previous = _editable_before(segments, point.segment_index)
        if previous is None:
            return
        point.segment_index = previous
        point.offset = len(segments[previous].text)
    segment = segments[point.segment_index]
    segment.text = segment.text[:point.offset - 1] + segment.text[point.offset:]
    point.offset -= 1


def _delete_after(surface: Surface, point: SurfacePoint) -> None:
    segments = surface.blocks[point.block_index].segments
    segment = segments[point.segment_index]
    if point.offset >= len(segment.text):
        following = _editable_after(segments, point.segment_index)
        if following is None:
            return
        # Deleting from the next segment leaves the cursor where it is
        segments[following].text = segments[following].text[1:]
        return
    segment.text = segment.text[:point.offset] + segment.text[point.offset + 1:]


class SyncEngine:
    """Edit operations over an ``EditorState``."""

    def __init__(self, state: EditorState):
        self.state = state
        self.last_edit: Optional[EditKind] = None

    # --- Dispatch -------------------------------------------------------

    def _commit_structural(self, lines: list[str], target: CursorPosition,
                           record: bool = True) -> None:
        state = self.state
        if record:
            state.history.push(state.text, force=True)
        rebuild(state, lines, target)
        self.last_edit = EditKind.STRUCTURAL
        logger.debug(f"Structural edit, cursor at {state.cursor}")
        self._after_edit()

    def _apply_direct(self, mutate: Callable[[Surface, SurfacePoint], None]) -> None:
        state = self.state
        state.history.push(state.text)
        previous_types = state.types

        mutate(state.surface, state.point)
        target = from_surface(state.surface, state.point)
        lines = extract_lines(state.surface)
        types = classify_all(lines)

        if types == previous_types:
            # Patch in place: the surface already holds the edit, only the
            # block's segmentation (bold spans) may need refreshing
            index = target.line_index
            state.lines = lines
            state.types = types
            state.surface.blocks[index] = render_line(
                lines[index], types[index],
                editing=(index in editing_lines(state)), width=state.width)
            place_cursor(state, target)
            state.timers.sync(state.lines, state.types, skip_line=state.timer_edit_line)
            self.last_edit = EditKind.DIRECT
        else:
            index = target.line_index
            if types[index] == LineType.TIMER and previous_types[index] != LineType.TIMER:
                # A directive typed by hand stays editable until finalized
                state.timer_edit_line = index
            elif types[index] in _KEYWORD_TYPES and previous_types[index] != types[index]:
                # A typed list or line keyword stays text until the cursor leaves it
                state.keyword_edit_line = index
            rebuild(state, lines, target)
            self.last_edit = EditKind.STRUCTURAL
            logger.debug("Direct edit changed line types, rebuilt surface")

        self._after_edit()

    def _after_edit(self) -> None:
        persist(self.state)
        self.state.slash.update(self.state.lines, self.state.cursor.line_index)

    def is_consistent(self) -> bool:
        """True when the surface matches a fresh classification of the lines."""
        state = self.state
        types = classify_all(state.lines)
        return (types == state.types
                and [b.line_type for b in state.surface.blocks] == types
                and extract_lines(state.surface) == state.lines)

    # --- Loading --------------------------------------------------------

    def set_width(self, width: int) -> None:
        """Re-render for a new view width (divider rules span the width)."""
        state = self.state
        if width == state.width:
            return
        state.width = width
        rebuild(state, state.lines, state.cursor)

    def load_page(self) -> None:
        state = self.state
        state.timer_edit_line = None
        state.keyword_edit_line = None
        state.slash.reset()
        lines = split_text(state.pages.current_text)
        rebuild(state, lines, end_of_document(lines))
        self.last_edit = EditKind.STRUCTURAL

    def switch_page(self, index: int) -> bool:
        switched = switch_page(self.state, index)
        if switched:
            self.last_edit = EditKind.STRUCTURAL
        return switched

    # --- Text input -----------------------------------------------------

    def insert_text(self, text: str) -> bool:
        text = strip_markers(text)
        if not text:
            return False
        if EditorConstants.LINE_SEPARATOR in text:
            return self.paste(text)
        if self.state.point.segment_index is None:
            # Structure blocks take no typing
            return False
        self._apply_direct(lambda surface, point: _insert_at(surface, point, text))
        return True

    def paste(self, text: str) -> bool:
        state = self.state
        parts = strip_markers(text).split(EditorConstants.LINE_SEPARATOR)
        index = state.cursor.line_index
        line = state.lines[index]
        if state.point.segment_index is None:
            lines = state.lines[:index + 1] + parts + state.lines[index + 1:]
            target = CursorPosition(index + len(parts), len(parts[-1]))
        else:
            k = _raw_offset(line, state.cursor.character_index)
            before, after = line[:k], line[k:]
            if len(parts) > 1:
                middle = [before + parts[0]] + parts[1:-1] + [parts[-1] + after]
                target = CursorPosition(index + len(parts) - 1, len(parts[-1]))
            else:
                middle = [before + parts[0] + after]
                target = CursorPosition(index, state.cursor.character_index + len(parts[0]))
            lines = state.lines[:index] + middle + state.lines[index + 1:]
        self._commit_structural(lines, target)
        return True

    def enter(self) -> bool:
        """Split the line at the cursor, or finalize a timer being typed."""
        state = self.state
        index = state.cursor.line_index
        if state.timer_edit_line == index:
            return self.finalize_timer()
        if state.keyword_edit_line == index:
            state.keyword_edit_line = None
        line = state.lines[index]
        if state.point.segment_index is None:
            lines = state.lines[:index + 1] + [""] + state.lines[index + 1:]
            self._commit_structural(lines, CursorPosition(index + 1, 0))
            return True
        if state.cursor.character_index == 0 and line:
            # Keep the line (and its checked state) intact below a new one
            lines = state.lines[:index] + [""] + state.lines[index:]
        else:
            k = _raw_offset(line, state.cursor.character_index)
            lines = state.lines[:index] + [line[:k], line[k:]] + state.lines[index + 1:]
        self._commit_structural(lines, CursorPosition(index + 1, 0))
        return True

    def backspace(self) -> bool:
        state = self.state
        index = state.cursor.line_index
        if state.point.segment_index is None:
            # Backspace on a structure block removes it
            if index > 0:
                target = CursorPosition(index - 1, len(clean(state.lines[index - 1])))
            else:
                target = CursorPosition(0, 0)
            return self.delete_line(index, target)
        if state.cursor.character_index > 0:
            self._apply_direct(_delete_before)
            return True
        if index == 0:
            return False

        previous = state.lines[index - 1]
        lines = list(state.lines)
        if not state.surface.blocks[index - 1].editable:
            del lines[index - 1]
            target = CursorPosition(index - 1, 0)
            self._shift_edit_lines(index - 1, -1)
        else:
            lines[index - 1] = previous + clean(state.lines[index])
            del lines[index]
            target = CursorPosition(index - 1, len(clean(previous)))
            self._shift_edit_lines(index, -1)
        self._commit_structural(lines, target)
        return True

    def delete_forward(self) -> bool:
        state = self.state
        index = state.cursor.line_index
        if state.point.segment_index is None:
            return self.delete_line(index, CursorPosition(index, 0))
        visible = clean(state.lines[index])
        if state.cursor.character_index < len(visible):
            self._apply_direct(_delete_after)
            return True
        if index + 1 >= len(state.lines):
            return False
        lines = list(state.lines)
        if not state.surface.blocks[index + 1].editable:
            del lines[index + 1]
        else:
            lines[index] = state.lines[index] + clean(state.lines[index + 1])
            del lines[index + 1]
        self._shift_edit_lines(index + 1, -1)
        self._commit_structural(lines, CursorPosition(index, state.cursor.character_index))
        return True

    # --- Line operations ------------------------------------------------

    def _shift_edit_lines(self, removed_index: int, delta: int) -> None:
        for name in ("timer_edit_line", "keyword_edit_line"):
            edit_line = getattr(self.state, name)
            if edit_line is None:
                continue
            if edit_line == removed_index and delta < 0:
                setattr(self.state, name, None)
            elif edit_line >= removed_index:
                setattr(self.state, name, edit_line + delta)

    def move_line(self, delta: int) -> bool:
        """Swap the cursor line with its neighbour (Alt+Up/Down)."""
        state = self.state
        index = state.cursor.line_index
        other = index + delta
        if delta == 0 or not 0 <= other < len(state.lines):
            return False
        lines = list(state.lines)
        lines[index], lines[other] = lines[other], lines[index]
        for name in ("timer_edit_line", "keyword_edit_line"):
            if getattr(state, name) == index:
                setattr(state, name, other)
            elif getattr(state, name) == other:
                setattr(state, name, index)
        self._commit_structural(lines, CursorPosition(other, state.cursor.character_index))
        return True

    def toggle_strike(self, index: Optional[int] = None) -> bool:
        state = self.state
        if index is None:
            index = state.cursor.line_index
        if not 0 <= index < len(state.lines) or state.types[index] != LineType.LIST_ITEM:
            return False
        lines = list(state.lines)
        lines[index] = toggle(lines[index])
        self._commit_structural(lines, CursorPosition(state.cursor.line_index,
                                                      state.cursor.character_index))
        return True

    def delete_line(self, index: Optional[int] = None,
                    target: Optional[CursorPosition] = None) -> bool:
        state = self.state
        if index is None:
            index = state.cursor.line_index
        if not 0 <= index < len(state.lines):
            return False
        lines = list(state.lines)
        del lines[index]
        if not lines:
            lines = [""]
        if target is None:
            # Clamps to the last line when the deleted line was the last one
            target = CursorPosition(index, 0)
        self._shift_edit_lines(index, -1)
        self._commit_structural(lines, target)
        return True

    def indent(self) -> bool:
        state = self.state
        index = state.cursor.line_index
        if state.point.segment_index is None:
            return False
        line = state.lines[index]
        prefix = STRUCK_MARKER if is_struck(line) else ""
        lines = list(state.lines)
        lines[index] = prefix + EditorConstants.INDENT + clean(line)
        target = CursorPosition(index, state.cursor.character_index + len(EditorConstants.INDENT))
        self._commit_structural(lines, target)
        return True

    def unindent(self) -> bool:
        state = self.state
        index = state.cursor.line_index
        if state.point.segment_index is None:
            return False
        line = state.lines[index]
        body = clean(line)
        leading = len(body) - len(body.lstrip(" "))
        remove = min(leading, len(EditorConstants.INDENT))
        if remove == 0:
            return False
        prefix = STRUCK_MARKER if is_struck(line) else ""
        lines = list(state.lines)
        lines[index] = prefix + body[remove:]
        target = CursorPosition(index, max(0, state.cursor.character_index - remove))
        self._commit_structural(lines, target)
        return True

    # --- Slash commands and timers --------------------------------------

    def commit_slash(self, name: str) -> bool:
        state = self.state
        index = state.slash.line_index
        if index is None:
            index = state.cursor.line_index
        state.slash.reset()
        lines = list(state.lines)
        if name in ("list", "line"):
            lines[index] = name
            if index + 1 >= len(lines):
                lines.append("")
            target = CursorPosition(index + 1, 0)
        elif name == "timer":
            lines[index] = EditorConstants.TIMER_PREFIX
            state.timer_edit_line = index
            target = CursorPosition(index, len(EditorConstants.TIMER_PREFIX))
        else:
            return False
        self._commit_structural(lines, target)
        return True

    def finalize_timer(self) -> bool:
        """Turn the timer line being typed into a running timer."""
        state = self.state
        index = state.timer_edit_line
        if index is None:
            return False
        state.timer_edit_line = None
        lines = list(state.lines)
        if state.types[index] != LineType.TIMER:
            self._commit_structural(lines, state.cursor)
            return True

        args = timer_args(lines[index])
        if args in CONTROL_TOKENS:
            runtime = state.timers.nearest_before(index)
            if runtime is not None:
                runtime.control(args)
                logger.debug(f"Timer control '{args}' applied above line {index}")
                lines[index] = ""
                self._commit_structural(lines, CursorPosition(index, 0))
                return True

        lines[index] = f"timer {args}" if args else "timer"
        if index + 1 >= len(lines):
            lines.append("")
        self._commit_structural(lines, CursorPosition(index + 1, 0))
        return True

    def cancel_timer(self) -> bool:
        """Discard the timer directive being typed."""
        state = self.state
        index = state.timer_edit_line
        if index is None:
            return False
        state.timer_edit_line = None
        lines = list(state.lines)
        lines[index] = ""
        self._commit_structural(lines, CursorPosition(index, 0))
        return True

    def toggle_timer(self, index: Optional[int] = None) -> bool:
        runtime = self.state.timers.runtime_for(
            self.state.cursor.line_index if index is None else index)
        if runtime is None:
            return False
        runtime.toggle()
        return True

    # --- Navigation -----------------------------------------------------

    def move_cursor(self, direction: str) -> None:
        state = self.state
        line, offset = state.cursor.line_index, state.cursor.character_index
        length = len(state.surface.blocks[line].text())
        last = len(state.lines) - 1
        keep_desired = False
        if direction == "left":
            if offset > 0:
                target = CursorPosition(line, offset - 1)
            elif line > 0:
                target = CursorPosition(line - 1, len(state.surface.blocks[line - 1].text()))
            else:
                target = CursorPosition(0, 0)
        elif direction == "right":
            if offset < length:
                target = CursorPosition(line, offset + 1)
            elif line < last:
                target = CursorPosition(line + 1, 0)
            else:
                target = CursorPosition(line, length)
        elif direction == "up":
            target = CursorPosition(max(0, line - 1), state.desired_offset)
            keep_desired = True
        elif direction == "down":
            target = CursorPosition(min(last, line + 1), state.desired_offset)
            keep_desired = True
        elif direction == "home":
            target = CursorPosition(line, 0)
        elif direction == "end":
            target = CursorPosition(line, length)
        elif direction == "document_start":
            target = CursorPosition(0, 0)
        elif direction == "document_end":
            target = CursorPosition(last, len(state.surface.blocks[last].text()))
        else:
            raise ValueError(f"Unknown direction: {direction}")

        if not self._leave_edit_line(target):
            desired = state.desired_offset
            place_cursor(state, target)
            if keep_desired:
                state.desired_offset = desired
        state.slash.update(state.lines, state.cursor.line_index)

    def _leave_edit_line(self, target: CursorPosition) -> bool:
        """Settle a directive being typed when the cursor moves off its line.

        An unfinished timer directive is discarded; a typed list or line
        keyword becomes its structure block. Returns True if the surface was
        rebuilt with the cursor on ``target``.
        """
        state = self.state
        if state.timer_edit_line is not None and target.line_index != state.timer_edit_line:
            lines = list(state.lines)
            lines[state.timer_edit_line] = ""
            state.timer_edit_line = None
            self._commit_structural(lines, target)
            return True
        if state.keyword_edit_line is not None and target.line_index != state.keyword_edit_line:
            state.keyword_edit_line = None
            rebuild(state, state.lines, target)
            self.last_edit = EditKind.STRUCTURAL
            return True
        return False

    def set_cursor(self, position: CursorPosition) -> None:
        if not self._leave_edit_line(position):
            place_cursor(self.state, position)
        self.state.slash.update(self.state.lines, self.state.cursor.line_index)

    def click(self, line_index: int, column: int) -> bool:
        """Pointer press at a column of a drawn line.

        Checkboxes toggle, delete markers remove their line, a timer read-out
        pauses or resumes its timer; anywhere else places the cursor.
        Returns True if the document changed.
        """
        state = self.state
        if not 0 <= line_index < len(state.surface.blocks):
            return False
        block = state.surface.blocks[line_index]
        start = 0
        for segment in block.segments:
            end = start + len(segment.text)
            if start <= column < end:
                if segment.role == SegmentRole.CHECKBOX:
                    return self.toggle_strike(line_index)
                if segment.role == SegmentRole.DELETE:
                    return self.delete_line(line_index)
                if segment.role == SegmentRole.TIMER:
                    self.toggle_timer(line_index)
                    return False
                break
            start = end
        point = point_at_column(state.surface, line_index, column)
        self.set_cursor(from_surface(state.surface, point))
        return False

    # --- History --------------------------------------------------------

    def undo(self) -> bool:
        state = self.state
        snapshot = state.history.undo(state.text)
        if snapshot is None:
            return False
        state.timer_edit_line = None
        state.keyword_edit_line = None
        rebuild(state, split_text(snapshot), state.cursor)
        self.last_edit = EditKind.STRUCTURAL
        self._after_edit()
        return True

    def redo(self) -> bool:
        state = self.state
        snapshot = state.history.redo(state.text)
        if snapshot is None:
            return False
        state.timer_edit_line = None
        state.keyword_edit_line = None
        rebuild(state, split_text(snapshot), state.cursor)
        self.last_edit = EditKind.STRUCTURAL
        self._after_edit()
        return True
