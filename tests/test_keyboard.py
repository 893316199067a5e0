"""Test keyboard input handling."""

import pytest
from unittest.mock import Mock

from ezwrite.keyboard import KeyboardHandler, KeyEvent, KeyType


class MockTerminal:
    """Mock terminal interface for testing."""

    def __init__(self):
        self._key_queue = []

    def get_key(self, timeout=None):
        """Mock get_key that returns from queue."""
        if self._key_queue:
            return self._key_queue.pop(0)
        return None

    def add_key(self, key_str):
        self._key_queue.append(key_str)


@pytest.fixture
def handler():
    return KeyboardHandler(Mock())


@pytest.mark.parametrize("token,key_type,value", [
    ("<LEFT>", KeyType.SPECIAL, "left"),
    ("<UP>", KeyType.SPECIAL, "up"),
    ("<HOME>", KeyType.SPECIAL, "home"),
    ("<PAGEUP>", KeyType.SPECIAL, "page_up"),
    ("<PAGEDOWN>", KeyType.SPECIAL, "page_down"),
    ("<F1>", KeyType.SPECIAL, "f1"),
    ("<TAB>", KeyType.SPECIAL, "tab"),
    ("<ESC>", KeyType.SPECIAL, "escape"),
    ("<Ctrl-z>", KeyType.CTRL, "z"),
    ("<Ctrl-j>", KeyType.SPECIAL, "enter"),
    ("<Esc+1>", KeyType.ALT, "1"),
    ("<Esc+UP>", KeyType.ALT, "up"),
    ("<Alt-down>", KeyType.ALT, "down"),
    ("<Shift-TAB>", KeyType.SHIFT_SPECIAL, "tab"),
    ("<BTAB>", KeyType.SHIFT_SPECIAL, "tab"),
])
def test_curtsies_tokens(handler, token, key_type, value):
    event = handler.parse_key(token)
    assert event.key_type == key_type
    assert event.value == value


def test_space_token_is_regular(handler):
    event = handler.parse_key("<SPACE>")
    assert event == KeyEvent(key_type=KeyType.REGULAR, value=" ", raw=" ")


@pytest.mark.parametrize("raw,key_type,value", [
    ("\t", KeyType.SPECIAL, "tab"),
    ("\x7f", KeyType.SPECIAL, "backspace"),
    ("\r", KeyType.SPECIAL, "enter"),
    ("\x1a", KeyType.CTRL, "z"),
    ("\x11", KeyType.CTRL, "q"),
    ("\x1b", KeyType.SPECIAL, "escape"),
])
def test_raw_control_characters(handler, raw, key_type, value):
    event = handler.parse_key(raw)
    assert event.key_type == key_type
    assert event.value == value


def test_regular_character(handler):
    event = handler.parse_key("a")
    assert event.key_type == KeyType.REGULAR
    assert event.value == "a"
    assert not event.is_sequence


def test_pasted_text_is_one_sequence(handler):
    event = handler.parse_key("line one\nline two")
    assert event.key_type == KeyType.REGULAR
    assert event.value == "line one\nline two"
    assert event.is_sequence


def test_ctrl_flag_set():
    event = KeyboardHandler(Mock()).parse_key("<Ctrl-s>")
    assert event.is_ctrl
    assert not event.is_alt


def test_get_key_event_reads_terminal():
    terminal = MockTerminal()
    handler = KeyboardHandler(terminal)
    terminal.add_key("x")
    terminal.add_key("<DOWN>")
    assert handler.get_key_event().value == "x"
    assert handler.get_key_event().value == "down"
    assert handler.get_key_event() is None
