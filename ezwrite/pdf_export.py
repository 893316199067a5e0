"""Generate a paginated PDF of a page.

Headings are set larger and bold, bold spans use the bold face, list items
get a drawn checkbox (struck items are ticked and greyed), dividers become a
horizontal rule. Timers and list headers are structure only and are skipped.
"""

import io
import logging
from pathlib import Path
from typing import Optional, Union

from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from .classifier import LineType, classify_all
from .export import ExportError
from .strike import clean, is_struck
from .surface import SegmentRole, split_bold

logger = logging.getLogger(__name__)


class PDFExporter:
    """Lay out classified lines on US Letter pages."""

    def __init__(self, font_name: str = "Helvetica", font_size: int = 11):
        self.page_width, self.page_height = letter
        self.margin = 72
        self.font_name = font_name
        self.font_name_bold = f"{font_name}-Bold"
        self.font_size = font_size
        self.line_height = font_size * 1.4
        self.heading_sizes = {
            LineType.HEADING1: font_size * 1.8,
            LineType.HEADING2: font_size * 1.4,
        }

        # Track unprintable characters for warning
        self.unprintable_chars = set()
        self.has_unprintable = False

    def generate_pdf(self, lines: list[str]) -> bytes:
        """Render ``lines`` and return the PDF document as bytes."""
        self.unprintable_chars = set()
        self.has_unprintable = False
        pdf_buffer = io.BytesIO()
        c = canvas.Canvas(pdf_buffer, pagesize=letter)

        text_width = self.page_width - 2 * self.margin
        top = self.page_height - self.margin
        y_position = top

        for line, line_type in zip(lines, classify_all(lines)):
            if line_type in (LineType.LIST_HEADER, LineType.TIMER):
                continue

            size = self.heading_sizes.get(line_type, self.font_size)
            height = size * 1.4 if line_type in self.heading_sizes else self.line_height
            if y_position - height < self.margin:
                c.showPage()
                y_position = top
            y_position -= height

            if line_type == LineType.DIVIDER:
                c.setLineWidth(0.5)
                mid = y_position + height / 3
                c.line(self.margin, mid, self.margin + text_width, mid)
                continue

            x_position = self.margin
            text = clean(line)
            struck = is_struck(line)
            if line_type in self.heading_sizes:
                text = text.strip().lstrip("#").strip()
            if line_type == LineType.LIST_ITEM and text.strip():
                text = text.strip()
                self._draw_checkbox(c, x_position, y_position, struck)
                x_position += self.font_size * 1.5

            if struck:
                c.setFillGray(0.5)
            self._draw_runs(c, text, x_position, y_position, size,
                            bold=line_type in self.heading_sizes)
            c.setFillGray(0)

        c.showPage()
        c.save()
        pdf_buffer.seek(0)
        return pdf_buffer.read()

    def _draw_checkbox(self, c: canvas.Canvas, x: float, y: float, checked: bool) -> None:
        box = self.font_size * 0.8
        c.setLineWidth(0.7)
        c.rect(x, y - 1, box, box)
        if checked:
            c.line(x + box * 0.2, y + box * 0.45, x + box * 0.45, y + box * 0.15)
            c.line(x + box * 0.45, y + box * 0.15, x + box * 0.85, y + box * 0.85)

    def _draw_runs(self, c: canvas.Canvas, text: str, x: float, y: float,
                   size: float, bold: bool = False) -> None:
        for segment in split_bold(text):
            if segment.role == SegmentRole.MARKUP:
                continue
            font = self.font_name_bold if bold or segment.role == SegmentRole.BOLD \
                else self.font_name
            safe = self._make_pdf_safe(segment.text)
            c.setFont(font, size)
            c.drawString(x, y, safe)
            x += c.stringWidth(safe, font, size)

    def _make_pdf_safe(self, text: str) -> str:
        """Replace characters the built-in fonts cannot show with '?'.

        The standard PDF fonts cover Windows-1252; anything else is tracked
        for the warning message.
        """
        result = []
        for char in text:
            try:
                char.encode('cp1252')
                result.append(char)
            except UnicodeEncodeError:
                self.unprintable_chars.add(char)
                self.has_unprintable = True
                result.append('?')
        return ''.join(result)

    def get_unprintable_warning(self) -> Optional[str]:
        if not self.has_unprintable:
            return None
        char_list = sorted(self.unprintable_chars)
        formatted_chars = [f"'{char}' (U+{ord(char):04X})" for char in char_list[:10]]
        if len(char_list) > 10:
            formatted_chars.append(f"... and {len(char_list) - 10} more")
        return (f"Warning: {len(self.unprintable_chars)} unique unprintable character(s) "
                f"were replaced with '?' in the PDF output: {', '.join(formatted_chars)}")

    def write(self, lines: list[str], path: Union[str, Path]) -> Path:
        """Write the PDF to ``path``.

        Raises:
            ExportError: If the file cannot be written.
        """
        path = Path(path)
        data = self.generate_pdf(lines)
        try:
            path.write_bytes(data)
        except OSError as e:
            logger.warning(f"Could not write PDF to {path}: {e}")
            raise ExportError(f"Could not write {path}: {e}") from e
        warning = self.get_unprintable_warning()
        if warning:
            logger.warning(warning)
        logger.info(f"Exported PDF to {path}")
        return path
