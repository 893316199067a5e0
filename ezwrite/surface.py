"""The rendered surface: one block per document line.

A block is a run of segments. Editable segments hold the line's visible
text; decorations (checkboxes, delete markers, rules, timer read-outs) are
drawn but never edited and never counted in cursor offsets. Rendering turns a
line array into blocks and extraction turns blocks back into the line array,
so the surface can be edited directly and read back.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Collection, Optional

from .classifier import DIRECTIVE_TYPES, LineType, classify_all, timer_args
from .constants import EditorConstants
from .strike import STRUCK_MARKER, clean, is_struck

_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")


class SegmentRole(Enum):
    TEXT = "text"
    BOLD = "bold"
    MARKUP = "markup"  # The ** around a bold span
    CHECKBOX = "checkbox"
    DELETE = "delete"
    LABEL = "label"
    RULE = "rule"
    TIMER = "timer"


EDITABLE_ROLES = frozenset({SegmentRole.TEXT, SegmentRole.BOLD, SegmentRole.MARKUP})


@dataclass
class Segment:
    text: str
    role: SegmentRole = SegmentRole.TEXT

    @property
    def editable(self) -> bool:
        return self.role in EDITABLE_ROLES


@dataclass
class SurfaceBlock:
    line_type: LineType
    segments: list[Segment] = field(default_factory=list)
    struck: bool = False
    timer_config: Optional[str] = None
    editing: bool = False  # Directive still being typed, shown as text
    source: Optional[str] = None  # Raw line behind a non-editable block

    @property
    def editable(self) -> bool:
        return any(seg.editable for seg in self.segments)

    def text(self) -> str:
        """Concatenated editable text of the block."""
        return "".join(seg.text for seg in self.segments if seg.editable)

    def display_text(self) -> str:
        return "".join(seg.text for seg in self.segments)


@dataclass
class Surface:
    blocks: list[SurfaceBlock] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.blocks)

    def __getitem__(self, index: int) -> SurfaceBlock:
        return self.blocks[index]


def split_bold(text: str) -> list[Segment]:
    """Split visible text into plain, markup and bold segments.

    The ``**`` delimiters stay in the text as editable markup segments, so the
    concatenation of the segments is always the original text.
    """
    segments: list[Segment] = []
    pos = 0
    for m in _BOLD_RE.finditer(text):
        if m.start() > pos:
            segments.append(Segment(text[pos:m.start()]))
        segments.append(Segment("**", SegmentRole.MARKUP))
        segments.append(Segment(m.group(1), SegmentRole.BOLD))
        segments.append(Segment("**", SegmentRole.MARKUP))
        pos = m.end()
    if pos < len(text) or not segments:
        segments.append(Segment(text[pos:]))
    return segments


def render_line(line: str, line_type: LineType, editing: bool = False,
                width: int = EditorConstants.DOCUMENT_WIDTH) -> SurfaceBlock:
    """Render a single line whose type is already known.

    With ``editing`` set, a directive line is rendered as plain editable text
    so the word can still be typed on or corrected.
    """
    if editing and line_type in DIRECTIVE_TYPES:
        config = timer_args(line) if line_type == LineType.TIMER else None
        return SurfaceBlock(line_type, split_bold(clean(line)), struck=is_struck(line),
                            timer_config=config, editing=True)
    if line_type == LineType.LIST_HEADER:
        return SurfaceBlock(line_type, [
            Segment("list", SegmentRole.LABEL),
            Segment(" ✕", SegmentRole.DELETE),
        ], source=line)
    if line_type == LineType.DIVIDER:
        return SurfaceBlock(line_type, [
            Segment(EditorConstants.DIVIDER_CHAR * max(1, width - 2), SegmentRole.RULE),
            Segment(" ✕", SegmentRole.DELETE),
        ], source=line)
    if line_type == LineType.TIMER:
        config = timer_args(line)
        return SurfaceBlock(line_type, [
            Segment(f"timer {config}".strip(), SegmentRole.TIMER),
        ], timer_config=config, source=line)
    if line_type == LineType.LIST_ITEM:
        struck = is_struck(line)
        checkbox = Segment("[x] " if struck else "[ ] ", SegmentRole.CHECKBOX)
        return SurfaceBlock(line_type, [checkbox] + split_bold(clean(line)), struck=struck)
    # Text and headings keep a marker left over from a former list item
    return SurfaceBlock(line_type, split_bold(clean(line)), struck=is_struck(line))


def render_document(lines: list[str], types: Optional[list[LineType]] = None,
                    editing_lines: Collection[int] = (),
                    width: int = EditorConstants.DOCUMENT_WIDTH) -> Surface:
    """Rebuild the whole surface from the line array."""
    if not lines:
        lines = [""]
    if types is None:
        types = classify_all(lines)
    blocks = [
        render_line(line, types[i], editing=(i in editing_lines), width=width)
        for i, line in enumerate(lines)
    ]
    return Surface(blocks)


def extract_line(block: SurfaceBlock) -> str:
    if block.source is not None:
        return block.source
    if not block.editing:
        if block.line_type == LineType.LIST_HEADER:
            return "list"
        if block.line_type == LineType.DIVIDER:
            return "line"
        if block.line_type == LineType.TIMER:
            return f"timer {block.timer_config}" if block.timer_config else "timer"
    text = block.text()
    if block.struck:
        return STRUCK_MARKER + text
    return text


def extract_lines(surface: Surface) -> list[str]:
    """Read the line array back out of the surface."""
    lines = [extract_line(block) for block in surface.blocks]
    return lines or [""]
