"""Encode the checked state of a line as an invisible prefix marker."""

from .constants import EditorConstants

STRUCK_MARKER = EditorConstants.STRUCK_MARKER


def is_struck(line: str) -> bool:
    return line.startswith(STRUCK_MARKER)


def clean(line: str) -> str:
    """Return the line without its strike marker."""
    if line.startswith(STRUCK_MARKER):
        return line[len(STRUCK_MARKER):]
    return line


def mark(line: str) -> str:
    """Prefix the strike marker.

    Callers check ``is_struck`` first; marking a struck line would leave a
    second marker in the visible text.
    """
    return STRUCK_MARKER + line


def toggle(line: str) -> str:
    if is_struck(line):
        return clean(line)
    return mark(line)


def strip_markers(text: str) -> str:
    """Remove every marker from text about to be inserted by the user."""
    return text.replace(STRUCK_MARKER, "")
