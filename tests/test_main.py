"""Tests for the command-line entry point."""

from unittest.mock import patch

import pytest

from ezwrite.__main__ import build_parser, main
from ezwrite.constants import EditorConstants
from ezwrite.storage import LocalStore


@pytest.fixture
def data_dir(tmp_path):
    with patch("ezwrite.storage.platformdirs.user_data_dir", return_value=str(tmp_path)):
        yield tmp_path


def test_version(capsys):
    assert main(["--version"]) == 0
    assert capsys.readouterr().out.startswith("ezwrite ")


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.page is None
    assert args.export is None
    assert not args.textual


def test_export_active_page(data_dir, tmp_path, capsys):
    store = LocalStore(data_dir / EditorConstants.STORAGE_FILENAME)
    store.set(EditorConstants.PAGES_STORAGE_KEY, ["list\nmilk", "second"])
    target = tmp_path / "out.md"
    assert main(["--export", "md", str(target)]) == 0
    assert target.read_text(encoding="utf-8") == "- [ ] milk\n"
    assert "page 1" in capsys.readouterr().out


def test_export_chosen_page(data_dir, tmp_path):
    store = LocalStore(data_dir / EditorConstants.STORAGE_FILENAME)
    store.set(EditorConstants.PAGES_STORAGE_KEY, ["first", "second"])
    target = tmp_path / "out.txt"
    assert main(["--page", "2", "--export", "txt", str(target)]) == 0
    assert target.read_text(encoding="utf-8") == "second\n"


def test_export_unknown_format(data_dir, capsys):
    assert main(["--export", "docx"]) == 2
    assert "Unknown export format" in capsys.readouterr().err


def test_export_too_many_arguments(data_dir):
    assert main(["--export", "md", "a.md", "b.md"]) == 2


@pytest.mark.parametrize("page", ["0", str(EditorConstants.PAGE_COUNT + 1)])
def test_page_out_of_range(page, capsys):
    assert main(["--page", page]) == 2
    assert "Page must be between" in capsys.readouterr().err


def test_runs_terminal_editor():
    with patch("ezwrite.editor.Editor") as editor_class:
        assert main(["--page", "2"]) == 0
    editor_class.assert_called_once_with(page=1)
    editor_class.return_value.run.assert_called_once()
