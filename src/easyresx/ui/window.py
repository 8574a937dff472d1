# -*- coding: utf-8 -*-
# SPDX-License-Identifier: GPL-3.0-or-later
"""Main application window — sidebar of groups and the resource grid."""

from __future__ import annotations

import logging
from typing import List, Optional

from PySide6.QtWidgets import QApplication, QLabel, QMainWindow, QSplitter
from PySide6.QtCore import Qt
from PySide6.QtGui import QColor, QPalette

from easyresx.services.session import EditSession, restore_saved_groups
from easyresx.services.settings import SavedGroup, Settings
from easyresx.services.store import Group, ResourceStore
from easyresx.ui.resource_grid import ResourceGrid
from easyresx.ui.sidebar import Sidebar

log = logging.getLogger(__name__)


def _dark_palette() -> QPalette:
    palette = QPalette()
    palette.setColor(QPalette.Window, QColor(37, 37, 38))
    palette.setColor(QPalette.WindowText, Qt.white)
    palette.setColor(QPalette.Base, QColor(30, 30, 30))
    palette.setColor(QPalette.AlternateBase, QColor(45, 45, 48))
    palette.setColor(QPalette.Text, Qt.white)
    palette.setColor(QPalette.Button, QColor(45, 45, 48))
    palette.setColor(QPalette.ButtonText, Qt.white)
    palette.setColor(QPalette.Highlight, QColor(59, 130, 246))
    palette.setColor(QPalette.HighlightedText, Qt.white)
    return palette


class EasyResXWindow(QMainWindow):
    """Top-level window; owns the working set and the active session."""

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__()
        self.setWindowTitle("EasyResX")
        self.resize(1200, 760)

        self._settings = settings or Settings.get()
        self._store = ResourceStore()
        self._session: Optional[EditSession] = None
        self._grid: Optional[ResourceGrid] = None

        groups = restore_saved_groups(self._store, self._settings.saved_groups)
        dark = self._settings.dark_theme

        self._sidebar = Sidebar(self._store, groups, dark)
        self._placeholder = QLabel(self.tr("Select or open a folder to manage your .resx resources."))
        self._placeholder.setAlignment(Qt.AlignCenter)

        self._splitter = QSplitter(Qt.Horizontal)
        self._splitter.addWidget(self._sidebar)
        self._splitter.addWidget(self._placeholder)
        self._splitter.setStretchFactor(1, 1)
        self._splitter.setSizes([260, 940])
        self.setCentralWidget(self._splitter)

        self._sidebar.group_selected.connect(self._open_group)
        self._sidebar.groups_changed.connect(self._save_groups)
        self._sidebar.theme_toggled.connect(self._set_dark)

        self._apply_theme(dark)
        self.statusBar().showMessage(self.tr("{} group(s) loaded").format(len(groups)), 3000)

    def _open_group(self, group: Optional[Group]):
        if group is not None and self._session is not None and self._session.group == group:
            return
        self._close_session()
        if group is None:
            self._show_central(self._placeholder)
            return

        self._session = EditSession(
            group, self._store,
            debounce_ms=int(self._settings["reload_debounce_ms"]),
            fanout_workers=int(self._settings["fanout_workers"]),
            parent=self,
        )
        self._grid = ResourceGrid(self._session, self._settings.dark_theme)
        self._grid.status_message.connect(lambda msg: self.statusBar().showMessage(msg, 4000))
        self._session.open()
        self._show_central(self._grid)
        self.setWindowTitle(f"EasyResX — {group.name}")
        log.info("Opened group %s (%d file(s))", group.name, len(group.files))

    def _close_session(self):
        if self._session is not None:
            self._session.close()
            self._session.deleteLater()
            self._session = None
        if self._grid is not None:
            self._grid.deleteLater()
            self._grid = None

    def _show_central(self, widget):
        current = self._splitter.widget(1)
        if current is widget:
            return
        self._splitter.replaceWidget(1, widget)
        widget.show()

    def _save_groups(self, groups: List[Group]):
        self._settings.saved_groups = [SavedGroup(g.name, g.directory) for g in groups]
        self._settings.save()

    def _set_dark(self, dark: bool):
        self._settings.dark_theme = dark
        self._settings.save()
        self._apply_theme(dark)

    def _apply_theme(self, dark: bool):
        app = QApplication.instance()
        app.setStyle("Fusion")
        app.setPalette(_dark_palette() if dark else app.style().standardPalette())
        if self._grid is not None:
            self._grid.set_dark_mode(dark)

    def closeEvent(self, event):
        self._close_session()
        super().closeEvent(event)
