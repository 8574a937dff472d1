# SPDX-License-Identifier: GPL-3.0-or-later
"""Editing session for one resource group.

The session owns every piece of mutable editing state (row snapshot,
selection, history) and hands the same objects to the coordinator, so
nothing lives in module globals.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterable, List, Optional

from PySide6.QtCore import QObject

from easyresx.services.coordinator import ConfirmCallback, MutationCoordinator
from easyresx.services.errors import EditError
from easyresx.services.fanout import FanOut
from easyresx.services.history import HistoryLog
from easyresx.services.row_table import RowTable
from easyresx.services.selection import SelectionTracker
from easyresx.services.settings import SavedGroup
from easyresx.services.store import Group, ResourceStore
from easyresx.services.watcher import DEFAULT_DEBOUNCE_MS, ChangeWatcher

log = logging.getLogger(__name__)


def _decline(title: str, prompt: str) -> bool:
    return False


class EditSession(QObject):
    """Wires store, row table, selection, history, coordinator and watcher."""

    def __init__(self, group: Group, store: Optional[ResourceStore] = None,
                 confirm: Optional[ConfirmCallback] = None,
                 debounce_ms: int = DEFAULT_DEBOUNCE_MS, fanout_workers: int = 8,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        self.group = group
        self.store = store or ResourceStore()
        # Destructive batch operations stay blocked until a UI installs a prompt.
        self.confirm: ConfirmCallback = confirm or _decline
        self._lock = threading.RLock()

        self.fanout = FanOut(fanout_workers)
        self.table = RowTable(self.store, group, self)
        self.selection = SelectionTracker(self)
        self.history = HistoryLog(self.store, group, self.fanout, self)
        self.coordinator = MutationCoordinator(
            self.store, group, self.fanout, self.table, self.selection, self.history,
            confirm=lambda title, prompt: self.confirm(title, prompt),
            lock=self._lock, parent=self,
        )
        self.watcher = ChangeWatcher(
            group.directory, [f.path for f in group.files], debounce_ms, self)

        self.watcher.reload_requested.connect(self.reload)
        self.table.rows_changed.connect(self._clamp_selection)

    @property
    def column_count(self) -> int:
        return 1 + len(self.group.files)

    @property
    def can_undo(self) -> bool:
        return self.history.depth > 0

    def open(self, watch: bool = True):
        """Load the rows and start listening for changes on disk."""
        self.table.reload()
        if watch:
            self.watcher.start()

    def close(self):
        self.watcher.stop()
        self.fanout.shutdown()

    def reload(self):
        with self._lock:
            self.table.reload()

    def undo(self) -> bool:
        return self.coordinator.undo()

    def _clamp_selection(self):
        self.selection.clamp(len(self.table.displayed), self.column_count)


def restore_saved_groups(store: ResourceStore, saved: Iterable[SavedGroup]) -> List[Group]:
    """Rescan each saved directory once and keep only the remembered groups."""
    saved = list(saved)
    groups: List[Group] = []
    for directory in dict.fromkeys(s.directory for s in saved):
        try:
            scanned = store.scan(directory)
        except EditError as e:
            log.warning("Failed to load path %s: %s", directory, e)
            continue
        names = {s.name for s in saved if s.directory == directory}
        groups.extend(g for g in scanned
                      if g.name in names and Path(g.directory) == Path(directory))
    return groups
