"""Tests for plain text and Markdown export."""

from datetime import date

import pytest

from ezwrite.export import (ExportError, default_filename, to_markdown, to_plain_text,
                            write_export)
from ezwrite.strike import mark

DOCUMENT = [
    "# Groceries",
    "list",
    "buy milk",
    mark("eggs"),
    "",
    "LINE",
    "Timer 25 5",
    "**bold** note",
]


def test_default_filename():
    assert default_filename("md", today=date(2024, 5, 1)) == "ezwrite-2024-05-01.md"


def test_default_filename_unknown_format():
    with pytest.raises(ExportError):
        default_filename("doc")


def test_markdown_export():
    assert to_markdown(DOCUMENT).split("\n") == [
        "# Groceries",
        "- [ ] buy milk",
        "- [x] eggs",
        "",
        "---",
        "**bold** note",
    ]


def test_markdown_list_keeps_items_after_one_blank_line():
    lines = ["list", "milk", "", "eggs", "", "", "after"]
    assert to_markdown(lines).split("\n") == [
        "- [ ] milk",
        "",
        "- [ ] eggs",
        "",
        "",
        "after",
    ]


def test_markdown_strikes_leftover_checked_text():
    assert to_markdown([mark("done")]) == "~~done~~"


def test_plain_text_export():
    assert to_plain_text(DOCUMENT).split("\n") == [
        "# Groceries",
        "list",
        "buy milk",
        "[x] eggs",
        "",
        "line",
        "timer 25 5",
        "**bold** note",
    ]


def test_write_text_export(tmp_path):
    target = tmp_path / "out.txt"
    written = write_export(["hello", "world"], "txt", target)
    assert written == target
    assert target.read_text(encoding="utf-8") == "hello\nworld\n"


def test_write_markdown_export(tmp_path):
    target = tmp_path / "out.md"
    write_export(["list", "milk"], "md", str(target))
    assert target.read_text(encoding="utf-8") == "- [ ] milk\n"


def test_write_to_missing_directory_raises(tmp_path):
    with pytest.raises(ExportError):
        write_export(["x"], "txt", tmp_path / "missing" / "out.txt")


def test_unknown_format_raises(tmp_path):
    with pytest.raises(ExportError):
        write_export(["x"], "docx", tmp_path / "out.docx")
