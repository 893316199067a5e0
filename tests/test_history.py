"""Unit tests for the undo history."""

import unittest

from ezwrite.history import UndoHistory


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestUndoHistory(unittest.TestCase):
    """Test snapshot undo/redo behavior."""

    def setUp(self):
        self.clock = FakeClock()
        self.history = UndoHistory(max_entries=5, debounce=0.5, clock=self.clock)

    def push(self, snapshot, force=False):
        self.clock.now += 1.0
        return self.history.push(snapshot, force=force)

    def test_undo_then_redo_restores_latest(self):
        states = ["", "a", "ab", "abc"]
        for before in states[:-1]:
            self.push(before)
        current = states[-1]
        for expected in reversed(states[:-1]):
            current = self.history.undo(current)
            self.assertEqual(current, expected)
        for expected in states[1:]:
            current = self.history.redo(current)
            self.assertEqual(current, expected)

    def test_nothing_to_undo(self):
        self.assertIsNone(self.history.undo("x"))
        self.assertIsNone(self.history.redo("x"))
        self.assertFalse(self.history.can_undo())

    def test_pushes_within_debounce_coalesce(self):
        self.assertTrue(self.history.push("a"))
        self.clock.now += 0.1
        self.assertFalse(self.history.push("ab"))
        self.assertEqual(len(self.history), 1)

    def test_forced_push_ignores_debounce(self):
        self.history.push("a")
        self.assertTrue(self.history.push("ab", force=True))
        self.assertEqual(len(self.history), 2)

    def test_new_push_clears_redo(self):
        self.push("a")
        self.history.undo("ab")
        self.assertTrue(self.history.can_redo())
        self.push("a")
        self.assertFalse(self.history.can_redo())

    def test_push_after_undo_is_not_debounced(self):
        self.history.push("a")
        self.history.undo("ab")
        self.assertTrue(self.history.push("a"))

    def test_history_is_capped(self):
        for i in range(10):
            self.push(str(i))
        self.assertEqual(len(self.history), 5)
        restored = []
        current = "end"
        while self.history.can_undo():
            current = self.history.undo(current)
            restored.append(current)
        self.assertEqual(restored, ["9", "8", "7", "6", "5"])

    def test_clear(self):
        self.push("a")
        self.history.clear()
        self.assertFalse(self.history.can_undo())
