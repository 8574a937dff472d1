# -*- coding: utf-8 -*-
# SPDX-License-Identifier: GPL-3.0-or-later
"""Qt table model exposing a session's displayed rows: key + one column per language."""

from __future__ import annotations

from typing import Any, Optional

from PySide6.QtCore import QAbstractTableModel, QModelIndex, QObject, Qt, QTimer
from PySide6.QtGui import QBrush, QColor

from easyresx.services.session import EditSession
from easyresx.services.store import DEFAULT_LANG, Row

# Background colors
_BG_SELECTED = QColor(59, 130, 246, 60)
_BG_BLANK = QColor(254, 249, 195)
_DARK_BG_BLANK = QColor(113, 96, 20, 90)


class ResourceTableModel(QAbstractTableModel):
    """Read the row snapshot, write edits through the coordinator."""

    def __init__(self, session: EditSession, dark_mode: bool = False,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        self._session = session
        self._dark_mode = dark_mode
        session.table.rows_changed.connect(self._on_rows_changed)
        session.selection.selection_changed.connect(self._on_selection_changed)

    def set_dark_mode(self, dark: bool):
        self._dark_mode = dark
        self._on_selection_changed()

    # ── Lookup ────────────────────────────────────────────────────

    def row_at(self, row: int) -> Optional[Row]:
        rows = self._session.table.displayed
        return rows[row] if 0 <= row < len(rows) else None

    def lang_at(self, column: int) -> Optional[str]:
        files = self._session.group.files
        return files[column - 1].lang if 1 <= column <= len(files) else None

    # ── QAbstractTableModel ───────────────────────────────────────

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self._session.table.displayed)

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return self._session.column_count

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole) -> Any:
        row = self.row_at(index.row()) if index.isValid() else None
        if row is None:
            return None
        lang = self.lang_at(index.column())
        value = row.key if index.column() == 0 else row.display(lang)

        if role in (Qt.DisplayRole, Qt.EditRole):
            return value
        if role == Qt.BackgroundRole:
            if self._session.selection.is_selected(index.row(), index.column()):
                return QBrush(_BG_SELECTED)
            if index.column() > 0 and not value.strip():
                return QBrush(_DARK_BG_BLANK if self._dark_mode else _BG_BLANK)
        if role == Qt.ToolTipRole and index.column() > 0 and lang not in row.values:
            return self.tr("Missing in this file")
        return None

    def headerData(self, section: int, orientation: Qt.Orientation, role: int = Qt.DisplayRole) -> Any:
        if role != Qt.DisplayRole:
            return None
        if orientation == Qt.Vertical:
            return str(section + 1)
        if section == 0:
            return self.tr("Key")
        lang = self.lang_at(section)
        return self.tr("Default") if lang == DEFAULT_LANG else lang

    def flags(self, index: QModelIndex) -> Qt.ItemFlags:
        if not index.isValid():
            return Qt.NoItemFlags
        return Qt.ItemIsEnabled | Qt.ItemIsEditable

    def setData(self, index: QModelIndex, value: Any, role: int = Qt.EditRole) -> bool:
        row = self.row_at(index.row()) if index.isValid() else None
        if row is None or role != Qt.EditRole:
            return False
        text = str(value) if value is not None else ""
        coordinator = self._session.coordinator
        # Run after the editor has closed; the edit resets this model.
        if index.column() == 0:
            QTimer.singleShot(0, lambda: coordinator.rename_key(row.key, text))
        else:
            lang = self.lang_at(index.column())
            QTimer.singleShot(0, lambda: coordinator.update_cell(row.key, lang, text))
        return True

    # ── Private ───────────────────────────────────────────────────

    def _on_rows_changed(self):
        self.beginResetModel()
        self.endResetModel()

    def _on_selection_changed(self):
        rows, cols = self.rowCount(), self.columnCount()
        if rows and cols:
            self.dataChanged.emit(self.index(0, 0), self.index(rows - 1, cols - 1),
                                  [Qt.BackgroundRole])
