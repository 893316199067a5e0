"""Tests for the slash-command popup controller."""

import pytest

from ezwrite.slash import SlashCommandController, trigger_query


@pytest.mark.parametrize("line,query", [
    ("/", ""),
    ("/li", "li"),
    ("  /timer  ", "timer"),
    ("/abcdefghij", "abcdefghij"),
    ("/abcdefghijk", None),
    ("text /li", None),
    ("/li st", None),
    ("plain", None),
])
def test_trigger_query(line, query):
    assert trigger_query(line) == query


def test_li_filters_to_list_and_line():
    slash = SlashCommandController()
    slash.update(["/li"], 0)
    assert slash.active
    assert [cmd.name for cmd in slash.matches] == ["list", "line"]
    assert slash.select_number(2).name == "line"
    assert slash.select_number(3) is None


def test_bare_slash_shows_every_command():
    slash = SlashCommandController()
    slash.update(["/"], 0)
    assert [cmd.name for cmd in slash.matches] == ["list", "line", "timer"]


def test_no_match_closes_popup():
    slash = SlashCommandController()
    slash.update(["/zz"], 0)
    assert not slash.active
    assert slash.highlighted() is None


def test_highlight_moves_within_bounds():
    slash = SlashCommandController()
    slash.update(["/"], 0)
    slash.move(1)
    assert slash.highlighted().name == "line"
    slash.move(10)
    assert slash.highlighted().name == "timer"
    slash.move(-10)
    assert slash.highlighted().name == "list"


def test_dismiss_sticks_until_text_changes():
    slash = SlashCommandController()
    slash.update(["/l"], 0)
    slash.dismiss()
    assert not slash.active
    slash.update(["/l"], 0)
    assert not slash.active
    slash.update(["/li"], 0)
    assert slash.active


def test_cursor_leaving_line_closes_popup():
    slash = SlashCommandController()
    slash.update(["/li", "text"], 0)
    slash.update(["/li", "text"], 1)
    assert not slash.active
