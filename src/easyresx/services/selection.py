# SPDX-License-Identifier: GPL-3.0-or-later
"""Rectangular drag selection over the displayed grid."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from PySide6.QtCore import QObject, Signal

Cell = Tuple[int, int]  # (row, column); column 0 is the key column

KEY_COLUMN = 0


@dataclass(frozen=True)
class SelectionRange:
    """Inclusive bounds of a selection."""
    start_row: int
    end_row: int
    start_col: int
    end_col: int

    def contains(self, row: int, col: int) -> bool:
        return (self.start_row <= row <= self.end_row
                and self.start_col <= col <= self.end_col)

    @property
    def includes_key_column(self) -> bool:
        return self.start_col <= KEY_COLUMN <= self.end_col

    def row_indices(self) -> range:
        return range(self.start_row, self.end_row + 1)

    def columns(self) -> range:
        return range(self.start_col, self.end_col + 1)

    def cells(self) -> Iterator[Cell]:
        for col in self.columns():
            for row in self.row_indices():
                yield row, col


class SelectionTracker(QObject):
    """Turns press / enter / release into an anchor-and-current selection.

    Release is expected from a global pointer-up so a drag that leaves the
    grid still ends.
    """

    selection_changed = Signal()

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._anchor: Optional[Cell] = None
        self._current: Optional[Cell] = None
        self._dragging = False

    @property
    def dragging(self) -> bool:
        return self._dragging

    @property
    def anchor(self) -> Optional[Cell]:
        return self._anchor

    @property
    def current(self) -> Optional[Cell]:
        return self._current

    def press(self, row: int, col: int):
        self._dragging = True
        self._anchor = self._current = (row, col)
        self.selection_changed.emit()

    def enter(self, row: int, col: int):
        if not self._dragging or self._current == (row, col):
            return
        self._current = (row, col)
        self.selection_changed.emit()

    def release(self):
        self._dragging = False

    def clear(self):
        self._dragging = False
        if self._anchor is None and self._current is None:
            return
        self._anchor = self._current = None
        self.selection_changed.emit()

    @property
    def range(self) -> Optional[SelectionRange]:
        if self._anchor is None or self._current is None:
            return None
        (r1, c1), (r2, c2) = self._anchor, self._current
        return SelectionRange(min(r1, r2), max(r1, r2), min(c1, c2), max(c1, c2))

    def is_selected(self, row: int, col: int) -> bool:
        sel = self.range
        return sel is not None and sel.contains(row, col)

    def clamp(self, row_count: int, col_count: int):
        """Keep both corners inside a grid of the given size."""
        if self._anchor is None or self._current is None:
            return
        if row_count <= 0 or col_count <= 0:
            self.clear()
            return
        anchor = (min(self._anchor[0], row_count - 1), min(self._anchor[1], col_count - 1))
        current = (min(self._current[0], row_count - 1), min(self._current[1], col_count - 1))
        if (anchor, current) != (self._anchor, self._current):
            self._anchor, self._current = anchor, current
            self.selection_changed.emit()
