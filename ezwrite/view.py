"""Soft-wrapped, scrollable view of the surface for the terminal."""

from dataclasses import dataclass, field
from typing import Optional

from .classifier import LineType
from .constants import EditorConstants
from .cursor import display_column
from .surface import SegmentRole, Surface, SurfaceBlock
from .timer import TimerBoard

STYLE_BOLD = 1
STYLE_UNDER = 2
STYLE_DIM = 4


def render_paragraph(paragraph: str, num_columns: int,
                     hanging_width: int = 0) -> tuple[list[str], list[int]]:
    """Render into a list of lines, with word wrap and an optional hanging indent.

    Returns (lines, cumulative_counts) where cumulative_counts are character
    counts in the original paragraph at the end of each visual line. Indent
    spaces on wrapped lines are not counted in cumulative_counts.
    """
    if not paragraph:
        return ([""], [0])

    indent_prefix = " " * hanging_width
    lines: list[str] = []
    cumulative_counts: list[int] = []
    char_count = 0
    words = paragraph.split(" ")
    current_line: Optional[str] = None
    line_index = 0

    def available_width_for_line(idx: int) -> int:
        if idx == 0:
            return num_columns
        return max(1, num_columns - hanging_width)

    def prefix_for_line(idx: int) -> str:
        return indent_prefix if idx > 0 else ""

    for word in words:
        width = available_width_for_line(line_index)
        if current_line is not None:
            if len(current_line) + 1 + len(word) < width:
                current_line += " " + word
                continue
            lines.append(prefix_for_line(line_index) + current_line)
            char_count += len(current_line) + 1  # +1 for the space at the break
            cumulative_counts.append(char_count)
            line_index += 1
            width = available_width_for_line(line_index)
        # Break long word across as many lines as needed
        while len(word) >= width:
            lines.append(prefix_for_line(line_index) + word[:width])
            char_count += width
            cumulative_counts.append(char_count)
            word = word[width:]
            line_index += 1
            width = available_width_for_line(line_index)
        current_line = word

    assert current_line is not None
    lines.append(prefix_for_line(line_index) + current_line)
    char_count += len(current_line)
    cumulative_counts.append(char_count)
    return (lines, cumulative_counts)


def cursor_row_and_column(cumulative_counts: list[int], char_index: int,
                          hanging_width: int = 0) -> tuple[int, int]:
    """Visual (row, column) of a character index within a wrapped paragraph.

    A cursor exactly on a wrap boundary sits at the start of the next row.
    """
    line_index = 0
    for i in range(len(cumulative_counts) - 1):
        if char_index == cumulative_counts[i]:
            line_index = i + 1
            break
    else:
        while line_index < len(cumulative_counts) - 1 and cumulative_counts[line_index] < char_index:
            line_index += 1
    if line_index == 0:
        return 0, char_index
    column = char_index - cumulative_counts[line_index - 1] + hanging_width
    return line_index, max(0, column)


@dataclass
class DisplayRow:
    text: str
    styles: list[int] = field(default_factory=list)
    block_index: int = 0
    start: int = 0  # Column in the drawn block where the row begins
    prefix: int = 0  # Hanging indent spaces at the start of the row


def timer_readout(block: SurfaceBlock, board: Optional[TimerBoard], line_index: int) -> str:
    runtime = board.runtime_for(line_index) if board is not None else None
    if runtime is None:
        return f"⏱ timer {block.timer_config or ''}".rstrip()
    state = "" if runtime.running or runtime.done else "  paused"
    return f"⏱ {runtime.label} {runtime.display}{state}"


def block_display(block: SurfaceBlock, board: Optional[TimerBoard] = None,
                  line_index: int = 0) -> tuple[str, list[int]]:
    """Drawn text of a block and a per-column style mask."""
    text_parts: list[str] = []
    styles: list[int] = []
    heading = block.line_type in (LineType.HEADING1, LineType.HEADING2)
    for segment in block.segments:
        seg_text = segment.text
        if segment.role == SegmentRole.TIMER:
            seg_text = timer_readout(block, board, line_index)
        style = 0
        if segment.role == SegmentRole.BOLD or heading:
            style |= STYLE_BOLD
        if block.line_type == LineType.HEADING1:
            style |= STYLE_UNDER
        if segment.role in (SegmentRole.MARKUP, SegmentRole.DELETE, SegmentRole.RULE):
            style |= STYLE_DIM
        if block.struck and segment.editable:
            style |= STYLE_DIM
        text_parts.append(seg_text)
        styles.extend([style] * len(seg_text))
    return "".join(text_parts), styles


class DocumentView:
    """Wraps every block to the view width and keeps the cursor on screen."""

    def __init__(self, num_rows: int = 24, num_columns: int = EditorConstants.DOCUMENT_WIDTH):
        self.num_rows = num_rows
        self.num_columns = num_columns
        self.top_row = 0
        self.rows: list[DisplayRow] = []
        self.visual_cursor_y = 0
        self.visual_cursor_x = 0
        self.cursor_row = 0  # Cursor row in the whole document

    def _hanging_width(self, block: SurfaceBlock) -> int:
        if block.segments and block.segments[0].role == SegmentRole.CHECKBOX:
            return len(block.segments[0].text)
        return 0

    def layout(self, surface: Surface, point, board: Optional[TimerBoard] = None) -> None:
        """Wrap the surface into rows and place the visual cursor."""
        self.rows = []
        cursor_row = 0
        cursor_col = 0
        for index, block in enumerate(surface.blocks):
            text, styles = block_display(block, board, index)
            hanging = self._hanging_width(block)
            lines, counts = render_paragraph(text, self.num_columns, hanging)
            first_row = len(self.rows)
            start = 0
            for row_index, line in enumerate(lines):
                prefix = hanging if row_index > 0 else 0
                row_styles = [0] * prefix + styles[start:start + len(line) - prefix]
                self.rows.append(DisplayRow(line, row_styles, index, start, prefix))
                start = counts[row_index]
            if index == point.block_index:
                column = display_column(surface, point)
                if point.segment_index is None:
                    column = 0
                row, col = cursor_row_and_column(counts, column, hanging)
                cursor_row = first_row + row
                cursor_col = col

        if cursor_col >= self.num_columns:
            cursor_row += 1
            cursor_col = 0
        self.cursor_row = cursor_row
        self._scroll_to_cursor()
        self.visual_cursor_y = self.cursor_row - self.top_row
        self.visual_cursor_x = cursor_col

    def _scroll_to_cursor(self) -> None:
        if self.cursor_row < self.top_row:
            self.top_row = self.cursor_row
        elif self.cursor_row >= self.top_row + self.num_rows:
            self.top_row = self.cursor_row - self.num_rows + 1
        max_top = max(0, len(self.rows) - self.num_rows)
        self.top_row = max(0, min(self.top_row, max(max_top, self.cursor_row - self.num_rows + 1)))

    def visible_rows(self) -> list[DisplayRow]:
        visible = self.rows[self.top_row:self.top_row + self.num_rows]
        return visible + [DisplayRow("", [], -1) for _ in range(self.num_rows - len(visible))]

    def row_to_block(self, visual_y: int) -> Optional[int]:
        index = self.top_row + visual_y
        if 0 <= index < len(self.rows):
            return self.rows[index].block_index
        return None

    def hit_test(self, visual_y: int, visual_x: int) -> Optional[tuple[int, int]]:
        """Block index and drawn column under a screen position."""
        index = self.top_row + visual_y
        if not 0 <= index < len(self.rows):
            return None
        row = self.rows[index]
        return row.block_index, row.start + max(0, visual_x - row.prefix)
