# SPDX-License-Identifier: GPL-3.0-or-later
"""Watch a group's files and ask for one reload per burst of changes."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Iterable, Optional

from PySide6.QtCore import QFileSystemWatcher, QObject, Qt, QTimer, Signal

log = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 500


class ChangeWatcher(QObject):
    """Debounced change notification for a directory of resource files.

    Every change restarts a single-shot timer; :attr:`reload_requested` is
    emitted once the timer runs out without a newer change.
    """

    reload_requested = Signal()

    def __init__(self, directory: str, files: Iterable[str] = (),
                 debounce_ms: int = DEFAULT_DEBOUNCE_MS, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._directory = directory
        self._files = list(files)
        self._fs_watcher: Optional[QFileSystemWatcher] = None
        self.last_event: Optional[float] = None

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setTimerType(Qt.PreciseTimer)
        self._timer.setInterval(debounce_ms)
        self._timer.timeout.connect(self._fire)

    @property
    def debounce_ms(self) -> int:
        return self._timer.interval()

    @property
    def pending(self) -> bool:
        """True while a reload is scheduled but has not fired yet."""
        return self._timer.isActive()

    @property
    def watching(self) -> bool:
        return self._fs_watcher is not None

    def start(self):
        """Begin watching the directory and every existing file."""
        self.stop()
        self._fs_watcher = QFileSystemWatcher(self)
        paths = [p for p in [self._directory, *self._files] if Path(p).exists()]
        if paths:
            self._fs_watcher.addPaths(paths)
        self._fs_watcher.directoryChanged.connect(self._on_directory_changed)
        self._fs_watcher.fileChanged.connect(self._on_file_changed)
        log.info("Watching %s (%d path(s))", self._directory, len(paths))

    def stop(self):
        self._timer.stop()
        if self._fs_watcher is not None:
            self._fs_watcher.directoryChanged.disconnect(self._on_directory_changed)
            self._fs_watcher.fileChanged.disconnect(self._on_file_changed)
            self._fs_watcher.deleteLater()
            self._fs_watcher = None

    def notify(self):
        """Record a change event and (re)start the debounce timer."""
        self.last_event = time.monotonic()
        self._timer.start()

    # ── Private ───────────────────────────────────────────────────

    def _on_directory_changed(self, path: str):
        log.debug("Directory changed: %s", path)
        self.notify()

    def _on_file_changed(self, path: str):
        # Editors that save by replacing the file drop it from the watch list.
        if self._fs_watcher is not None and Path(path).exists() \
                and path not in self._fs_watcher.files():
            self._fs_watcher.addPath(path)
        log.debug("File changed: %s", path)
        self.notify()

    def _fire(self):
        log.info("Reloading after external change in %s", self._directory)
        self.reload_requested.emit()
