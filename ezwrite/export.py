"""Plain text and Markdown renditions of a page, and export file naming."""

import logging
from datetime import date
from pathlib import Path
from typing import Optional, Union

from .classifier import LineType, classify_all, timer_args
from .constants import EditorConstants
from .strike import clean, is_struck

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("txt", "md", "pdf")


class ExportError(Exception):
    """Raised when a document cannot be exported."""


def default_filename(fmt: str, today: Optional[date] = None) -> str:
    """Return the default file name for an export, e.g. ``ezwrite-2024-05-01.txt``."""
    if fmt not in EXPORT_FORMATS:
        raise ExportError(f"Unknown export format: {fmt}")
    today = today or date.today()
    return f"{EditorConstants.EXPORT_PREFIX}-{today.isoformat()}.{fmt}"


def to_plain_text(lines: list[str]) -> str:
    """Render lines as plain text.

    Checked items become ``[x] <text>``; everything else keeps its text, so
    the directives (``list``, ``line``, ``timer ...``) survive as written.
    """
    types = classify_all(lines)
    out = []
    for line, line_type in zip(lines, types):
        if line_type == LineType.LIST_HEADER:
            out.append("list")
        elif line_type == LineType.DIVIDER:
            out.append("line")
        elif line_type == LineType.TIMER:
            args = timer_args(line)
            out.append(f"timer {args}" if args else "timer")
        elif is_struck(line):
            out.append(f"[x] {clean(line)}")
        else:
            out.append(line)
    return EditorConstants.LINE_SEPARATOR.join(out)


def to_markdown(lines: list[str]) -> str:
    types = classify_all(lines)
    out = []
    for line, line_type in zip(lines, types):
        text = clean(line)
        if line_type in (LineType.LIST_HEADER, LineType.TIMER):
            continue
        if line_type == LineType.DIVIDER:
            out.append("---")
        elif line_type == LineType.LIST_ITEM and not text.strip():
            # A blank line inside a list is spacing, not an item
            out.append("")
        elif line_type == LineType.LIST_ITEM:
            box = "[x]" if is_struck(line) else "[ ]"
            out.append(f"- {box} {text.strip()}")
        elif line_type in (LineType.HEADING1, LineType.HEADING2):
            out.append(text.strip())
        elif is_struck(line):
            # A checked item left over outside any list
            out.append(f"~~{text}~~" if text.strip() else text)
        else:
            out.append(text)
    return EditorConstants.LINE_SEPARATOR.join(out)


def write_export(lines: list[str], fmt: str,
                 path: Optional[Union[str, Path]] = None) -> Path:
    """Write an export of ``lines`` and return the path written.

    Raises:
        ExportError: If the format is unknown or the file cannot be written.
    """
    target = Path(path) if path else Path(default_filename(fmt))
    if fmt == "pdf":
        from .pdf_export import PDFExporter
        PDFExporter().write(lines, target)
        return target

    if fmt == "txt":
        content = to_plain_text(lines)
    elif fmt == "md":
        content = to_markdown(lines)
    else:
        raise ExportError(f"Unknown export format: {fmt}")

    try:
        with open(target, "w", encoding="utf-8") as f:
            f.write(content)
            if content and not content.endswith("\n"):
                f.write("\n")
    except OSError as e:
        logger.warning(f"Could not write export to {target}: {e}")
        raise ExportError(f"Could not write {target}: {e}") from e
    logger.info(f"Exported {len(lines)} lines to {target}")
    return target
