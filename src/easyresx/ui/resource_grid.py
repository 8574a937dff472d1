# -*- coding: utf-8 -*-
# SPDX-License-Identifier: GPL-3.0-or-later
"""Resource grid — the table editor for one group."""

from __future__ import annotations

from typing import Optional

from PySide6.QtWidgets import (
    QAbstractItemView, QApplication, QHBoxLayout, QHeaderView, QInputDialog,
    QLineEdit, QMenu, QMessageBox, QPushButton, QTableView, QToolButton,
    QVBoxLayout, QWidget,
)
from PySide6.QtCore import QEvent, QObject, QPoint, Qt, Signal
from PySide6.QtGui import QKeySequence, QShortcut

from easyresx.services.selection import SelectionTracker
from easyresx.services.session import EditSession
from easyresx.ui.table_model import ResourceTableModel


class GridView(QTableView):
    """Table view that feeds mouse drags into a :class:`SelectionTracker`."""

    delete_pressed = Signal()

    def __init__(self, selection: SelectionTracker, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self._selection = selection
        self.setSelectionMode(QAbstractItemView.NoSelection)
        self.setEditTriggers(QAbstractItemView.DoubleClicked | QAbstractItemView.EditKeyPressed)
        self.setContextMenuPolicy(Qt.CustomContextMenu)
        self.verticalHeader().setDefaultSectionSize(30)
        # Pointer-up is tracked application wide so drags ending outside still finish.
        QApplication.instance().installEventFilter(self)

    def mousePressEvent(self, event):
        if event.button() == Qt.LeftButton:
            index = self.indexAt(event.position().toPoint())
            if index.isValid():
                self._selection.press(index.row(), index.column())
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        if self._selection.dragging:
            index = self.indexAt(event.position().toPoint())
            if index.isValid():
                self._selection.enter(index.row(), index.column())
        super().mouseMoveEvent(event)

    def keyPressEvent(self, event):
        if event.key() in (Qt.Key_Delete, Qt.Key_Backspace) and self.state() != QAbstractItemView.EditingState:
            self.delete_pressed.emit()
            return
        super().keyPressEvent(event)

    def eventFilter(self, obj: QObject, event: QEvent) -> bool:
        if event.type() == QEvent.MouseButtonRelease and self._selection.dragging:
            self._selection.release()
        return False


class ResourceGrid(QWidget):
    """Toolbar, search and grid for one :class:`EditSession`."""

    status_message = Signal(str)

    def __init__(self, session: EditSession, dark_mode: bool = False,
                 parent: Optional[QWidget] = None):
        super().__init__(parent)
        self._session = session
        self._model = ResourceTableModel(session, dark_mode, self)
        session.confirm = self._ask

        self._build_ui()
        self._setup_connections()
        self._setup_shortcuts()

    @property
    def session(self) -> EditSession:
        return self._session

    def set_dark_mode(self, dark: bool):
        self._model.set_dark_mode(dark)

    def _build_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        toolbar = QHBoxLayout()
        toolbar.setContentsMargins(8, 8, 8, 8)

        self._add_btn = QPushButton("+")
        self._add_btn.setToolTip(self.tr("Add New Key"))
        self._add_btn.setFixedWidth(32)
        toolbar.addWidget(self._add_btn)

        self._blank_btn = QToolButton()
        self._blank_btn.setText(self.tr("Blanks"))
        self._blank_btn.setCheckable(True)
        self._blank_btn.setToolTip(self.tr("Show Rows with Empty Cells"))
        toolbar.addWidget(self._blank_btn)

        self._undo_btn = QToolButton()
        self._undo_btn.setText(self.tr("Undo"))
        self._undo_btn.setToolTip(self.tr("Undo (Ctrl+Z)"))
        self._undo_btn.setEnabled(False)
        toolbar.addWidget(self._undo_btn)

        self._search_entry = QLineEdit()
        self._search_entry.setPlaceholderText(self.tr("Search keys and values..."))
        self._search_entry.setClearButtonEnabled(True)
        toolbar.addWidget(self._search_entry, 1)
        layout.addLayout(toolbar)

        self._view = GridView(self._session.selection)
        self._view.setModel(self._model)
        header = self._view.horizontalHeader()
        header.setSectionResizeMode(QHeaderView.Interactive)
        header.setDefaultSectionSize(300)
        header.resizeSection(0, 250)
        layout.addWidget(self._view, 1)

    def _setup_connections(self):
        coordinator = self._session.coordinator
        self._add_btn.clicked.connect(self._add_key)
        self._undo_btn.clicked.connect(self._session.undo)
        self._blank_btn.toggled.connect(self._apply_filter)
        self._search_entry.textChanged.connect(self._apply_filter)
        self._view.delete_pressed.connect(coordinator.batch_delete)
        self._view.customContextMenuRequested.connect(self._show_context_menu)
        self._session.history.depth_changed.connect(lambda depth: self._undo_btn.setEnabled(depth > 0))
        coordinator.failed.connect(self._show_error)
        coordinator.succeeded.connect(self.status_message.emit)
        coordinator.scroll_to_key.connect(self._scroll_to_key)

    def _setup_shortcuts(self):
        QShortcut(QKeySequence.Undo, self, self._session.undo)
        QShortcut(QKeySequence("Ctrl+N"), self, self._add_key)
        QShortcut(QKeySequence("Ctrl+F"), self, lambda: self._search_entry.setFocus())

    # ── Actions ───────────────────────────────────────────────────

    def _apply_filter(self, *_):
        self._session.table.set_filter(self._search_entry.text(), self._blank_btn.isChecked())

    def _add_key(self):
        key, ok = QInputDialog.getText(
            self, self.tr("Add New Key"), self.tr("Enter the name for the new resource key."))
        if ok and key:
            self._session.coordinator.add_key(key)

    def _show_context_menu(self, pos: QPoint):
        index = self._view.indexAt(pos)
        row = self._model.row_at(index.row()) if index.isValid() else None
        if row is None:
            return
        lang = self._model.lang_at(index.column())

        menu = QMenu(self)
        clear_action = menu.addAction(self.tr("Clear Value"))
        clear_action.setEnabled(lang is not None and bool(row.display(lang)))
        delete_action = menu.addAction(self.tr("Delete Key"))

        chosen = menu.exec(self._view.viewport().mapToGlobal(pos))
        if chosen is clear_action:
            self._session.coordinator.clear_cell(row.key, lang)
        elif chosen is delete_action:
            reply = QMessageBox.question(
                self,
                self.tr("Delete Key"),
                self.tr('Are you sure you want to delete the key "{}"?').format(row.key),
                QMessageBox.Yes | QMessageBox.No,
            )
            if reply == QMessageBox.Yes:
                self._session.coordinator.delete_key(row.key)

    def _scroll_to_key(self, key: str):
        row = self._session.table.index_of(key)
        if row >= 0:
            self._view.scrollTo(self._model.index(row, 0), QAbstractItemView.PositionAtCenter)

    def _ask(self, title: str, prompt: str) -> bool:
        box = QMessageBox(QMessageBox.Warning, title, prompt, QMessageBox.Yes | QMessageBox.No, self)
        return box.exec() == QMessageBox.Yes

    def _show_error(self, title: str, message: str):
        QMessageBox.warning(self, self.tr(title), message)
