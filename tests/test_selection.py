"""Tests for the drag selection tracker."""
from easyresx.services.selection import SelectionRange, SelectionTracker


class TestSelectionTracker:
    def test_no_selection_initially(self):
        sel = SelectionTracker()
        assert sel.range is None
        assert not sel.is_selected(0, 0)

    def test_drag_normalizes_bounds(self):
        sel = SelectionTracker()
        sel.press(5, 3)
        sel.enter(2, 1)
        assert sel.range == SelectionRange(2, 5, 1, 3)
        assert sel.is_selected(3, 2)
        assert not sel.is_selected(1, 2)
        assert not sel.range.includes_key_column

    def test_enter_ignored_without_drag(self):
        sel = SelectionTracker()
        sel.press(1, 1)
        sel.release()
        sel.enter(4, 2)
        assert sel.range == SelectionRange(1, 1, 1, 1)
        assert not sel.dragging

    def test_clear(self):
        sel = SelectionTracker()
        sel.press(0, 0)
        sel.clear()
        assert sel.range is None
        assert sel.anchor is None and sel.current is None

    def test_signal_emitted(self):
        sel = SelectionTracker()
        events = []
        sel.selection_changed.connect(lambda: events.append(sel.range))
        sel.press(0, 0)
        sel.enter(0, 0)  # same cell, no change
        sel.enter(1, 0)
        sel.clear()
        sel.clear()  # already empty
        assert events == [SelectionRange(0, 0, 0, 0), SelectionRange(0, 1, 0, 0), None]

    def test_clamp(self):
        sel = SelectionTracker()
        sel.press(1, 0)
        sel.enter(8, 4)
        sel.clamp(5, 3)
        assert sel.range == SelectionRange(1, 4, 0, 2)
        sel.clamp(0, 3)
        assert sel.range is None


class TestSelectionRange:
    def test_cells_and_key_column(self):
        r = SelectionRange(0, 1, 0, 1)
        assert r.includes_key_column
        assert list(r.cells()) == [(0, 0), (1, 0), (0, 1), (1, 1)]
        assert list(r.row_indices()) == [0, 1]
