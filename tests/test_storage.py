"""Unit tests for local storage and the page collection."""

import json
import unittest
from unittest.mock import patch

from ezwrite.constants import EditorConstants
from ezwrite.pages import PageStore
from ezwrite.storage import LocalStore


def test_set_and_get(tmp_path):
    store = LocalStore(tmp_path / "data" / "storage.json")
    assert store.set("key", {"a": 1})
    assert store.get("key") == {"a": 1}
    assert store.contains("key")
    # A fresh instance reads from disk
    assert LocalStore(tmp_path / "data" / "storage.json").get("key") == {"a": 1}


def test_write_leaves_no_temp_file(tmp_path):
    path = tmp_path / "storage.json"
    store = LocalStore(path)
    store.set("key", "value")
    assert path.exists()
    assert not path.with_suffix(".tmp").exists()


def test_failed_replace_keeps_previous_file(tmp_path):
    path = tmp_path / "storage.json"
    store = LocalStore(path)
    store.set("key", "old")
    with patch("pathlib.Path.replace", side_effect=OSError("disk full")):
        assert not store.set("key", "new")
    assert json.loads(path.read_text(encoding="utf-8")) == {"key": "old"}
    assert not path.with_suffix(".tmp").exists()


def test_corrupt_file_reads_as_empty(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("{not json", encoding="utf-8")
    assert LocalStore(path).get("key", "default") == "default"


def test_non_dict_file_reads_as_empty(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("[1, 2]", encoding="utf-8")
    assert LocalStore(path).get("key") is None


def test_remove(tmp_path):
    store = LocalStore(tmp_path / "storage.json")
    store.update({"a": 1, "b": 2})
    store.remove("a")
    assert not store.contains("a")
    assert store.get("b") == 2


class TestPageStore(unittest.TestCase):
    def setUp(self):
        import tempfile
        from pathlib import Path
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = Path(self.temp_dir.name) / "storage.json"
        self.store = LocalStore(self.path)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_fresh_store_has_empty_pages(self):
        pages = PageStore(self.store)
        pages.load()
        self.assertEqual(pages.pages, [""] * EditorConstants.PAGE_COUNT)
        self.assertEqual(pages.active, 0)

    def test_legacy_document_becomes_first_page(self):
        self.store.set(EditorConstants.LEGACY_STORAGE_KEY, "old notes")
        pages = PageStore(self.store)
        pages.load()
        self.assertEqual(pages.pages[0], "old notes")
        # Migration is persisted under the new key
        saved = LocalStore(self.path).get(EditorConstants.PAGES_STORAGE_KEY)
        self.assertEqual(saved[0], "old notes")

    def test_switch_keeps_outgoing_text_and_persists_active(self):
        pages = PageStore(self.store)
        pages.load()
        self.assertTrue(pages.switch_to(2, "page one"))
        self.assertEqual(pages.pages[0], "page one")
        self.assertEqual(pages.active, 2)

        reloaded = PageStore(LocalStore(self.path))
        reloaded.load()
        self.assertEqual(reloaded.active, 2)
        self.assertEqual(reloaded.pages[0], "page one")

    def test_switch_out_of_range_or_same_page(self):
        pages = PageStore(self.store)
        pages.load()
        self.assertFalse(pages.switch_to(0))
        self.assertFalse(pages.switch_to(EditorConstants.PAGE_COUNT))
        self.assertFalse(pages.switch_to(-1))

    def test_short_saved_list_is_padded(self):
        self.store.set(EditorConstants.PAGES_STORAGE_KEY, ["a", 3])
        self.store.set(EditorConstants.ACTIVE_PAGE_KEY, 99)
        pages = PageStore(self.store)
        pages.load()
        self.assertEqual(pages.pages[:3], ["a", "", ""])
        self.assertEqual(len(pages.pages), EditorConstants.PAGE_COUNT)
        self.assertEqual(pages.active, 0)
