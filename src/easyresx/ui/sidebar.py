# -*- coding: utf-8 -*-
# SPDX-License-Identifier: GPL-3.0-or-later
"""Sidebar listing the resource groups of the working set."""

from __future__ import annotations

import os
from typing import List, Optional

from PySide6.QtWidgets import (
    QCheckBox, QFileDialog, QHBoxLayout, QLabel, QListWidget, QListWidgetItem,
    QMessageBox, QPushButton, QVBoxLayout, QWidget,
)
from PySide6.QtCore import Qt, Signal

from easyresx.services.errors import EditError
from easyresx.services.store import Group, ResourceStore


class Sidebar(QWidget):
    """Open folders, pick a group, remove groups, toggle the theme."""

    group_selected = Signal(object)  # Group or None
    groups_changed = Signal(list)
    theme_toggled = Signal(bool)

    def __init__(self, store: ResourceStore, groups: List[Group], dark_mode: bool = False,
                 parent: Optional[QWidget] = None):
        super().__init__(parent)
        self._store = store
        self._groups: List[Group] = list(groups)
        self._last_dir = ""

        layout = QVBoxLayout(self)

        title = QLabel(self.tr("Resources"))
        title.setStyleSheet("font-weight: bold;")
        layout.addWidget(title)

        self._list = QListWidget()
        layout.addWidget(self._list, 1)

        buttons = QHBoxLayout()
        self._open_btn = QPushButton(self.tr("Open Folder..."))
        self._remove_btn = QPushButton(self.tr("Remove"))
        self._remove_btn.setEnabled(False)
        buttons.addWidget(self._open_btn)
        buttons.addWidget(self._remove_btn)
        layout.addLayout(buttons)

        self._dark_check = QCheckBox(self.tr("Dark theme"))
        self._dark_check.setChecked(dark_mode)
        layout.addWidget(self._dark_check)

        self._open_btn.clicked.connect(self._open_folder)
        self._remove_btn.clicked.connect(self._remove_current)
        self._list.currentRowChanged.connect(self._on_current_changed)
        self._dark_check.toggled.connect(self.theme_toggled.emit)

        self._refresh()

    @property
    def groups(self) -> List[Group]:
        return list(self._groups)

    def add_groups(self, groups: List[Group]) -> int:
        """Add groups not yet in the working set; returns how many were new."""
        known = {(g.name, g.directory) for g in self._groups}
        new = [g for g in groups if (g.name, g.directory) not in known]
        if new:
            self._groups.extend(new)
            self._refresh()
            self.groups_changed.emit(self.groups)
        return len(new)

    def _refresh(self):
        current = self._list.currentRow()
        self._list.blockSignals(True)
        self._list.clear()
        for group in self._groups:
            item = QListWidgetItem(group.name)
            item.setToolTip(f"{group.directory}\n" + ", ".join(group.langs))
            self._list.addItem(item)
        # Restoring the row is not a new selection.
        if 0 <= current < self._list.count():
            self._list.setCurrentRow(current)
        self._list.blockSignals(False)

    def _open_folder(self):
        folder = QFileDialog.getExistingDirectory(
            self, self.tr("Open Folder"), self._last_dir or os.path.expanduser("~"))
        if not folder:
            return
        self._last_dir = folder
        try:
            found = self._store.scan(folder)
        except EditError as e:
            QMessageBox.warning(self, self.tr("Open Folder"), str(e))
            return
        if not found:
            QMessageBox.information(
                self, self.tr("Open Folder"), self.tr("No .resx files found in this folder."))
            return
        self.add_groups(found)

    def _remove_current(self):
        row = self._list.currentRow()
        if not 0 <= row < len(self._groups):
            return
        del self._groups[row]
        self._list.blockSignals(True)
        self._list.takeItem(row)
        self._list.setCurrentRow(-1)
        self._list.blockSignals(False)
        self._remove_btn.setEnabled(False)
        self.groups_changed.emit(self.groups)
        self.group_selected.emit(None)

    def _on_current_changed(self, row: int):
        self._remove_btn.setEnabled(row >= 0)
        self.group_selected.emit(self._groups[row] if 0 <= row < len(self._groups) else None)
