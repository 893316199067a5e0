"""Tests for the Textual front-end."""

import pytest

from ezwrite.keyboard import KeyType
from ezwrite.storage import LocalStore
from ezwrite.textual_app import EzwriteApp, key_event_from_textual


@pytest.mark.parametrize("key,character,key_type,value", [
    ("ctrl+s", None, KeyType.CTRL, "s"),
    ("alt+1", None, KeyType.ALT, "1"),
    ("alt+up", None, KeyType.ALT, "up"),
    ("shift+tab", None, KeyType.SHIFT_SPECIAL, "tab"),
    ("pageup", None, KeyType.SPECIAL, "page_up"),
    ("enter", "\r", KeyType.SPECIAL, "enter"),
    ("escape", "\x1b", KeyType.SPECIAL, "escape"),
    ("a", "a", KeyType.REGULAR, "a"),
    ("space", " ", KeyType.REGULAR, " "),
])
def test_key_translation(key, character, key_type, value):
    event = key_event_from_textual(key, character)
    assert event.key_type == key_type
    assert event.value == value


def test_unknown_key_is_ignored():
    assert key_event_from_textual("f9", None) is None


def test_app_creation(tmp_path):
    app = EzwriteApp(store=LocalStore(tmp_path / "storage.json"))
    assert app.state.lines == [""]
    assert app.engine.state is app.state
    assert app.running
