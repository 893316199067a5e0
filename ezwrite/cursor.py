"""Map cursor positions between the line array and the rendered surface.

A logical position is (line index, offset into the line's visible text).
A surface point is (block index, segment index, offset into that segment).
Decorations never count toward the logical offset.
"""

from dataclasses import dataclass
from typing import Optional

from .surface import Surface, SurfaceBlock


@dataclass
class CursorPosition:
    line_index: int = 0
    character_index: int = 0

    def __lt__(self, other):
        if self.line_index != other.line_index:
            return self.line_index < other.line_index
        return self.character_index < other.character_index

    def __ge__(self, other):
        return not self < other


@dataclass
class SurfacePoint:
    block_index: int = 0
    segment_index: Optional[int] = None  # None on blocks with no editable text
    offset: int = 0


def _editable_indices(block: SurfaceBlock) -> list[int]:
    return [i for i, seg in enumerate(block.segments) if seg.editable]


def visible_length(block: SurfaceBlock) -> int:
    return len(block.text())


def clamp_position(surface: Surface, position: CursorPosition) -> CursorPosition:
    """Clamp a logical position onto the surface.

    A line past either end of the document clamps to the nearest line at
    offset 0. An offset past the end of the line clamps to end of line.
    """
    if not surface.blocks:
        return CursorPosition(0, 0)
    last = len(surface.blocks) - 1
    if position.line_index < 0:
        return CursorPosition(0, 0)
    if position.line_index > last:
        return CursorPosition(last, 0)
    length = visible_length(surface.blocks[position.line_index])
    offset = min(max(0, position.character_index), length)
    return CursorPosition(position.line_index, offset)


def to_surface(surface: Surface, position: CursorPosition) -> SurfacePoint:
    """Place a logical position on the surface, skipping decorations."""
    position = clamp_position(surface, position)
    if not surface.blocks:
        return SurfacePoint(0, None, 0)
    block = surface.blocks[position.line_index]
    editable = _editable_indices(block)
    if not editable:
        return SurfacePoint(position.line_index, None, 0)

    remaining = position.character_index
    for i in editable:
        length = len(block.segments[i].text)
        if remaining <= length:
            return SurfacePoint(position.line_index, i, remaining)
        remaining -= length
    last = editable[-1]
    return SurfacePoint(position.line_index, last, len(block.segments[last].text))


def from_surface(surface: Surface, point: SurfacePoint) -> CursorPosition:
    """Recover the logical position of a surface point."""
    if not surface.blocks:
        return CursorPosition(0, 0)
    block_index = min(max(0, point.block_index), len(surface.blocks) - 1)
    block = surface.blocks[block_index]
    if point.segment_index is None or point.segment_index >= len(block.segments):
        return CursorPosition(block_index, 0)
    offset = sum(
        len(seg.text)
        for seg in block.segments[:point.segment_index]
        if seg.editable
    )
    segment = block.segments[point.segment_index]
    if segment.editable:
        offset += min(max(0, point.offset), len(segment.text))
    return CursorPosition(block_index, offset)


def display_column(surface: Surface, point: SurfacePoint) -> int:
    """Column of a point within its drawn block, decorations included."""
    if not surface.blocks or point.segment_index is None:
        return 0
    block = surface.blocks[point.block_index]
    column = sum(len(seg.text) for seg in block.segments[:point.segment_index])
    return column + point.offset


def point_at_column(surface: Surface, block_index: int, column: int) -> SurfacePoint:
    """Surface point for a column of a drawn block.

    A column inside a decoration snaps to the closest editable boundary.
    """
    block = surface.blocks[block_index]
    best: Optional[SurfacePoint] = None
    best_distance = None
    start = 0
    for i, seg in enumerate(block.segments):
        end = start + len(seg.text)
        if seg.editable:
            if start <= column <= end:
                return SurfacePoint(block_index, i, column - start)
            if column < start:
                distance, offset = start - column, 0
            else:
                distance, offset = column - end, len(seg.text)
            if best_distance is None or distance < best_distance:
                best = SurfacePoint(block_index, i, offset)
                best_distance = distance
        start = end
    return best or SurfacePoint(block_index, None, 0)
