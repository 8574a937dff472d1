# SPDX-License-Identifier: GPL-3.0-or-later
"""Turn one logical edit into per-file store calls.

Each operation follows the same two steps: the row table is updated
optimistically, then the store result is confirmed. Confirmation either
records the action in the history or, on any failure, reloads the table
from disk so that what is shown always matches the files. Failures are
reported through :attr:`MutationCoordinator.failed` and never raised.

The fan-out joins on the calling thread, so when edits come from the GUI
the optimistic state is not painted before the confirmation replaces it;
it only matters for observers of :attr:`RowTable.rows_changed`.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from easyresx.parsers.resx import is_xml_text
from easyresx.services.errors import EditError, ValidationFailure
from easyresx.services.fanout import FanOut
from easyresx.services.history import (
    AddAction, BatchAction, DeleteAction, HistoryAction, HistoryLog,
    RenameAction, UpdateAction, describe,
)
from easyresx.services.row_table import RowPatch, RowTable
from easyresx.services.selection import SelectionTracker
from easyresx.services.store import Group, ResourceStore

log = logging.getLogger(__name__)

ConfirmCallback = Callable[[str, str], bool]  # (title, prompt) -> accepted

_PREVIEW_KEYS = 10


class MutationCoordinator(QObject):
    """Fans edits out across the files of a group and records them."""

    failed = Signal(str, str)  # title, message
    succeeded = Signal(str)  # status message
    scroll_to_key = Signal(str)

    def __init__(self, store: ResourceStore, group: Group, fanout: FanOut,
                 table: RowTable, selection: SelectionTracker, history: HistoryLog,
                 confirm: ConfirmCallback, lock: Optional[threading.RLock] = None,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        self._store = store
        self._group = group
        self._fanout = fanout
        self._table = table
        self._selection = selection
        self._history = history
        self._confirm_cb = confirm
        self._lock = lock or threading.RLock()
        self.last_error: Optional[Exception] = None

    # ── Single edits ──────────────────────────────────────────────

    def update_cell(self, key: str, lang: str, value: str) -> bool:
        with self._lock:
            row = self._table.row(key)
            f = self._group.file_for(lang)
            if row is None or f is None:
                return self._reject("Update failed", ValidationFailure(f'Unknown cell "{key}" ({lang})'))
            old = row.values.get(lang)
            if old == value or (old is None and value == ""):
                return True
            if not is_xml_text(value):
                return self._reject("Update failed", ValidationFailure("Value contains characters not allowed in XML"))

            action = UpdateAction(key, lang, old, value)
            self._table.apply_optimistic({key: RowPatch(values={lang: value})})
            try:
                self._fanout.run({f.path: lambda: self._store.set_value(f, key, value)})
            except EditError as e:
                return self._confirm(action, "Update failed", e)
            return self._confirm(action)

    def clear_cell(self, key: str, lang: str) -> bool:
        """Empty one language value; nothing happens if it already is."""
        return self.update_cell(key, lang, "")

    def rename_key(self, old_key: str, new_key: str) -> bool:
        with self._lock:
            if new_key == old_key:
                return True
            if not new_key.strip():
                return self._reject("Rename failed", ValidationFailure("Key name must not be empty"))
            if not is_xml_text(new_key):
                return self._reject("Rename failed", ValidationFailure("Key name contains characters not allowed in XML"))
            if self._table.has_key(new_key):
                return self._reject("Rename failed", ValidationFailure(f'Key "{new_key}" already exists'))
            if not self._table.has_key(old_key):
                return self._reject("Rename failed", ValidationFailure(f'Unknown key "{old_key}"'))

            action = RenameAction(old_key, new_key)
            self._table.apply_optimistic({old_key: RowPatch(new_key=new_key)})
            try:
                self._fanout.run({
                    f.path: (lambda f=f: self._store.rename_key(f, old_key, new_key))
                    for f in self._group.files
                })
            except EditError as e:
                return self._confirm(action, "Rename failed", e)
            return self._confirm(action)

    def add_key(self, key: str) -> bool:
        with self._lock:
            if not key.strip():
                return self._reject("Add key failed", ValidationFailure("Key name must not be empty"))
            if not is_xml_text(key):
                return self._reject("Add key failed", ValidationFailure("Key name contains characters not allowed in XML"))
            if self._table.has_key(key):
                return self._reject("Add key failed", ValidationFailure(f'Key "{key}" already exists'))

            action = AddAction(key)
            try:
                self._fanout.run({
                    f.path: (lambda f=f: self._store.insert_key(f, key))
                    for f in self._group.files
                })
            except EditError as e:
                return self._confirm(action, "Add key failed", e)
            self._confirm(action, message=f'Added "{key}"')
            self._table.reload()
            self.scroll_to_key.emit(key)
            return True

    def delete_key(self, key: str) -> bool:
        with self._lock:
            row = self._table.row(key)
            if row is None:
                return self._reject("Delete failed", ValidationFailure(f'Unknown key "{key}"'))
            snapshot = row.copy()

            self._table.apply_optimistic({key: RowPatch(removed=True)})
            self._selection.clear()
            try:
                positions = self._fanout.run({
                    f.path: (lambda f=f: self._store.remove_key(f, key))
                    for f in self._group.files
                })
            except EditError as e:
                return self._confirm(None, "Delete failed", e)
            indices = {path: pos for path, pos in positions.items() if pos is not None}
            return self._confirm(DeleteAction(key, snapshot, indices), message=f'Deleted "{key}"')

    # ── Selection ─────────────────────────────────────────────────

    def batch_delete(self) -> bool:
        """Delete the selected rows, or clear the selected language cells.

        Rows are deleted when the key column is part of the selection;
        otherwise non-empty language cells are cleared. Both ask for
        confirmation first.
        """
        with self._lock:
            sel = self._selection.range
            if sel is None:
                return False
            rows = self._table.displayed

            if sel.includes_key_column:
                targets = [rows[i] for i in sel.row_indices() if 0 <= i < len(rows)]
                if not targets:
                    return False
                return self._delete_rows([r.key for r in targets])

            files = self._group.files
            cells: List[Tuple[str, str, str]] = []
            for col in sel.columns():
                if not 1 <= col <= len(files):
                    continue
                lang = files[col - 1].lang
                for i in sel.row_indices():
                    if 0 <= i < len(rows):
                        old = rows[i].values.get(lang, "")
                        if old:
                            cells.append((rows[i].key, lang, old))
            if not cells:
                return False
            return self._clear_cells(cells)

    def _delete_rows(self, keys: List[str]) -> bool:
        preview = "\n".join(keys[:_PREVIEW_KEYS]) + ("\n..." if len(keys) > _PREVIEW_KEYS else "")
        if not self._confirm_cb(
                self.tr("Batch Delete Keys"),
                self.tr("Are you sure you want to delete {} keys?\n\n{}").format(len(keys), preview)):
            return False

        snapshots = {key: self._table.row(key).copy() for key in keys}
        self._table.apply_optimistic({key: RowPatch(removed=True) for key in keys})
        self._selection.clear()
        try:
            results = self._fanout.run({
                f.path: (lambda f=f: self._store.batch_remove_keys(f, keys))
                for f in self._group.files
            })
        except EditError as e:
            return self._confirm(None, "Batch delete failed", e)

        indices: Dict[str, Dict[str, int]] = {}
        for path, positions in results.items():
            for key, position in positions.items():
                indices.setdefault(key, {})[path] = position
        action = BatchAction(tuple(
            DeleteAction(key, snapshots[key], indices.get(key, {})) for key in keys
        ))
        return self._confirm(action, message=f"Deleted {len(keys)} keys")

    def _clear_cells(self, cells: List[Tuple[str, str, str]]) -> bool:
        if not self._confirm_cb(
                self.tr("Batch Clear Values"),
                self.tr("Are you sure you want to clear {} cells?").format(len(cells))):
            return False

        updates: Dict[str, Dict[str, str]] = {}
        patches: Dict[str, RowPatch] = {}
        actions: List[HistoryAction] = []
        for key, lang, old in cells:
            f = self._group.file_for(lang)
            updates.setdefault(f.path, {})[key] = ""
            patches.setdefault(key, RowPatch()).values[lang] = ""
            actions.append(UpdateAction(key, lang, old, ""))

        self._table.apply_optimistic(patches)
        try:
            self._fanout.run({
                f.path: (lambda f=f: self._store.batch_set_values(f, updates[f.path]))
                for f in self._group.files if f.path in updates
            })
        except EditError as e:
            return self._confirm(None, "Batch clear failed", e)
        return self._confirm(BatchAction(tuple(actions)), message=f"Cleared {len(cells)} cells")

    # ── Undo ──────────────────────────────────────────────────────

    def undo(self) -> bool:
        """Reverse the last recorded edit, then resync with the files."""
        with self._lock:
            if not self._history.depth:
                return False
            self._selection.clear()
            try:
                action = self._history.undo()
            except EditError as e:
                self._fail("Undo failed", e)
                self._table.reload()
                return False
            self._table.reload()
            self.last_error = None
            self.succeeded.emit(f"Undid {describe(action)}")
            return True

    # ── Confirmation ──────────────────────────────────────────────

    def _confirm(self, action: Optional[HistoryAction], title: str = "",
                 error: Optional[Exception] = None, message: str = "") -> bool:
        """Commit *action* to the history, or resync after *error*."""
        if error is not None:
            self._fail(title, error)
            self._table.reload()
            return False
        self._history.push(action)
        self.last_error = None
        log.info("Applied %s", describe(action))
        if message:
            self.succeeded.emit(message)
        return True

    def _reject(self, title: str, error: ValidationFailure) -> bool:
        self._fail(title, error)
        return False

    def _fail(self, title: str, error: Exception):
        self.last_error = error
        log.warning("%s: %s", title, error)
        self.failed.emit(title, str(error))
