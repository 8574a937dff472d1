# SPDX-License-Identifier: GPL-3.0-or-later
"""In-memory projection of a resource group as rows keyed by resource key.

The files stay authoritative: the snapshot held here is rebuilt on every
load and may run ahead of the disk only between an optimistic update and
the confirmation (or reload) that follows it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from PySide6.QtCore import QCollator, QObject, Signal

from easyresx.services.store import Group, ResourceStore, Row

log = logging.getLogger(__name__)


@dataclass
class RowPatch:
    """Optimistic change to one row: new values, a new key, or removal."""
    values: Dict[str, str] = field(default_factory=dict)
    new_key: Optional[str] = None
    removed: bool = False


def filter_rows(rows: Sequence[Row], langs: Iterable[str],
                text: str = "", blanks_only: bool = False) -> List[Row]:
    """Return the rows a filter lets through, in their original order."""
    result = list(rows)
    if blanks_only:
        langs = list(langs)
        result = [r for r in result
                  if any(not r.values.get(lang, "").strip() for lang in langs)]
    if text:
        lower = text.lower()
        result = [r for r in result
                  if lower in r.key.lower()
                  or any(lower in v.lower() for v in r.values.values())]
    return result


class RowTable(QObject):
    """Owns the currently displayed snapshot of one group."""

    rows_changed = Signal()
    reloaded = Signal()

    def __init__(self, store: ResourceStore, group: Group, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._store = store
        self._group = group
        self._rows: List[Row] = []
        self._displayed: Optional[List[Row]] = None
        self._filter_text = ""
        self._blanks_only = False
        self._collator = QCollator()

    @classmethod
    def load(cls, store: ResourceStore, group: Group) -> RowTable:
        table = cls(store, group)
        table.reload()
        return table

    @property
    def group(self) -> Group:
        return self._group

    # ── Snapshot ──────────────────────────────────────────────────

    def reload(self):
        """Discard the snapshot and rebuild it from the files."""
        rows = self._store.load_rows(self._group.files)
        self._rows = self._sorted(rows)
        self._displayed = None
        log.info("Loaded %d row(s) for %s", len(self._rows), self._group.name)
        self.reloaded.emit()
        self.rows_changed.emit()

    @property
    def rows(self) -> List[Row]:
        return list(self._rows)

    def row(self, key: str) -> Optional[Row]:
        for r in self._rows:
            if r.key == key:
                return r
        return None

    def has_key(self, key: str) -> bool:
        return self.row(key) is not None

    def apply_optimistic(self, patches: Mapping[str, RowPatch]):
        """Change the snapshot ahead of the store confirming the edit."""
        rows: List[Row] = []
        for r in self._rows:
            patch = patches.get(r.key)
            if patch is None:
                rows.append(r)
                continue
            if patch.removed:
                continue
            updated = r.copy()
            updated.values.update(patch.values)
            if patch.new_key is not None:
                updated.key = patch.new_key
            rows.append(updated)
        self._rows = rows
        self._displayed = None
        self.rows_changed.emit()

    # ── View ──────────────────────────────────────────────────────

    @property
    def displayed(self) -> List[Row]:
        """The filtered row sequence that cell coordinates refer to."""
        if self._displayed is None:
            self._displayed = filter_rows(
                self._rows, self._group.langs, self._filter_text, self._blanks_only)
        return self._displayed

    @property
    def filter_text(self) -> str:
        return self._filter_text

    @property
    def blanks_only(self) -> bool:
        return self._blanks_only

    def set_filter(self, text: str = "", blanks_only: bool = False):
        if text == self._filter_text and blanks_only == self._blanks_only:
            return
        self._filter_text = text
        self._blanks_only = blanks_only
        self._displayed = None
        self.rows_changed.emit()

    def index_of(self, key: str) -> int:
        """Index of *key* in the displayed sequence, or -1."""
        for i, r in enumerate(self.displayed):
            if r.key == key:
                return i
        return -1

    # ── Private ───────────────────────────────────────────────────

    def _sorted(self, rows: Iterable[Row]) -> List[Row]:
        return sorted(rows, key=cmp_to_key(lambda a, b: self._collator.compare(a.key, b.key)))
