"""Tests for line classification."""

import pytest

from ezwrite.classifier import LineType, classify, classify_all, timer_args, is_directive
from ezwrite.strike import mark


def test_single_blank_line_stays_in_list():
    lines = "list\nbuy milk\n\nfoo".split("\n")
    assert classify_all(lines) == [
        LineType.LIST_HEADER,
        LineType.LIST_ITEM,
        LineType.LIST_ITEM,
        LineType.LIST_ITEM,
    ]


def test_two_blank_lines_end_list():
    lines = "list\nbuy milk\n\n\nfoo".split("\n")
    assert classify_all(lines) == [
        LineType.LIST_HEADER,
        LineType.LIST_ITEM,
        LineType.LIST_ITEM,
        LineType.LIST_ITEM,
        LineType.TEXT,
    ]


def test_blank_run_resets_on_text():
    lines = ["list", "a", "", "b", "", "c"]
    assert classify_all(lines)[1:] == [LineType.LIST_ITEM] * 5


def test_empty_document_is_text():
    assert classify_all([""]) == [LineType.TEXT]


@pytest.mark.parametrize("line,expected", [
    ("list", LineType.LIST_HEADER),
    ("  LIST  ", LineType.LIST_HEADER),
    ("line", LineType.DIVIDER),
    ("Line", LineType.DIVIDER),
    ("timer", LineType.TIMER),
    ("timer 5", LineType.TIMER),
    ("TIMER pomo", LineType.TIMER),
    ("timers", LineType.TEXT),
    ("# Title", LineType.HEADING1),
    ("## Section", LineType.HEADING2),
    ("#Title", LineType.TEXT),
    ("lists", LineType.TEXT),
])
def test_own_types(line, expected):
    assert classify([line], 0) == expected


def test_strike_marker_is_transparent():
    assert classify([mark("list")], 0) == LineType.LIST_HEADER
    assert classify(["list", mark("done")], 1) == LineType.LIST_ITEM


def test_list_items_follow_header():
    lines = ["list", "a", "b", "c"]
    assert classify_all(lines)[1:] == [LineType.LIST_ITEM] * 3


@pytest.mark.parametrize("closer", ["line", "timer 5", "# Heading", "## Sub"])
def test_structure_lines_close_list_context(closer):
    lines = ["list", "a", closer, "b"]
    types = classify_all(lines)
    assert types[1] == LineType.LIST_ITEM
    assert types[3] == LineType.TEXT


def test_header_followed_by_divider_gives_text_after():
    assert classify_all(["list", "line", "x"])[2] == LineType.TEXT


def test_text_without_header_is_text():
    assert classify_all(["a", "b"]) == [LineType.TEXT, LineType.TEXT]


def test_second_list_after_blank():
    lines = ["list", "a", "", "list", "b"]
    types = classify_all(lines)
    assert types == [LineType.LIST_HEADER, LineType.LIST_ITEM, LineType.LIST_ITEM,
                     LineType.LIST_HEADER, LineType.LIST_ITEM]


def test_blank_lines_before_any_header_are_text():
    assert classify_all(["", "", "a"]) == [LineType.TEXT] * 3


def test_classification_depends_only_on_prior_lines():
    lines = ["intro", "list", "one", "two", "", "tail"]
    for i in range(len(lines)):
        expected = classify(lines, i)
        # Anything after index i is irrelevant
        assert classify(lines[:i + 1], i) == expected
        assert classify(lines[:i + 1] + ["list", "line", "zzz"], i) == expected


def test_classification_is_idempotent():
    lines = ["# Notes", "list", "a", mark("b"), "", "line", "timer pomo", "x"]
    assert classify_all(lines) == classify_all(list(lines))


class TestTimerArgs:
    def test_args_are_trimmed_and_lowercased(self):
        assert timer_args("timer  POMO ") == "pomo"
        assert timer_args("timer 25 5") == "25 5"

    def test_bare_timer_has_no_args(self):
        assert timer_args("timer") == ""

    def test_marker_is_ignored(self):
        assert timer_args(mark("timer 5")) == "5"


def test_is_directive():
    assert is_directive(LineType.LIST_HEADER)
    assert is_directive(LineType.DIVIDER)
    assert is_directive(LineType.TIMER)
    assert not is_directive(LineType.LIST_ITEM)
    assert not is_directive(LineType.HEADING1)
