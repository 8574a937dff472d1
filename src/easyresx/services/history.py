# SPDX-License-Identifier: GPL-3.0-or-later
"""Undo history for resource group edits.

Every action carries what is needed to put the files back exactly as they
were, including the storage position of deleted keys. There is no redo:
an undone action is discarded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple, Union

from PySide6.QtCore import QObject, Signal

from easyresx.parsers.resx import ResxInsert
from easyresx.services.errors import EditError, PartialFanoutFailure, StoreIOFailure, UndoReversalFailure
from easyresx.services.fanout import FanOut
from easyresx.services.store import Group, ResourceStore, Row

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpdateAction:
    """A value change in one language. ``old_value`` None: key was absent."""
    key: str
    lang: str
    old_value: Optional[str]
    new_value: str


@dataclass(frozen=True)
class RenameAction:
    old_key: str
    new_key: str


@dataclass(frozen=True)
class AddAction:
    key: str


@dataclass(frozen=True)
class DeleteAction:
    """A removed key, its values and its position in each file that had it."""
    key: str
    row: Row
    indices: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class BatchAction:
    """Several actions performed as one user-visible operation."""
    actions: Tuple["HistoryAction", ...]


HistoryAction = Union[UpdateAction, RenameAction, AddAction, DeleteAction, BatchAction]


def describe(action: HistoryAction) -> str:
    """Short human-readable label, used in status messages."""
    if isinstance(action, UpdateAction):
        return f'edit of "{action.key}" ({action.lang})'
    if isinstance(action, RenameAction):
        return f'rename "{action.old_key}" → "{action.new_key}"'
    if isinstance(action, AddAction):
        return f'add "{action.key}"'
    if isinstance(action, DeleteAction):
        return f'delete "{action.key}"'
    if action.actions and all(isinstance(a, DeleteAction) for a in action.actions):
        return f"delete of {len(action.actions)} keys"
    if action.actions and all(isinstance(a, UpdateAction) for a in action.actions):
        return f"change of {len(action.actions)} values"
    return f"{len(action.actions)} changes"


class HistoryLog(QObject):
    """Append-only stack of reversible actions for one group.

    A reversal that fails leaves its action on top of the log. Steps that
    did complete are remembered, so retrying the undo continues with the
    remaining files and children instead of reversing anything twice.
    """

    depth_changed = Signal(int)

    def __init__(self, store: ResourceStore, group: Group, fanout: FanOut,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        self._store = store
        self._group = group
        self._fanout = fanout
        self._actions: List[HistoryAction] = []
        self._progress: Dict[int, Set[str]] = {}

    # ── Stack ─────────────────────────────────────────────────────

    def push(self, action: HistoryAction):
        self._actions.append(action)
        log.debug("History: pushed %s (depth %d)", describe(action), len(self._actions))
        self.depth_changed.emit(len(self._actions))

    def peek(self) -> Optional[HistoryAction]:
        return self._actions[-1] if self._actions else None

    @property
    def depth(self) -> int:
        return len(self._actions)

    def __len__(self) -> int:
        return len(self._actions)

    def clear(self):
        self._actions.clear()
        self._progress.clear()
        self.depth_changed.emit(0)

    def undo(self) -> Optional[HistoryAction]:
        """Reverse the last action and pop it.

        Returns the undone action, or None when the log is empty. Raises
        :class:`UndoReversalFailure` if a step fails; the action then stays.
        """
        if not self._actions:
            return None
        action = self._actions[-1]
        done = self._progress.setdefault(id(action), set())
        self._reverse(action, done, "")
        self._actions.pop()
        del self._progress[id(action)]
        log.info("Undid %s", describe(action))
        self.depth_changed.emit(len(self._actions))
        return action

    # ── Reversal ──────────────────────────────────────────────────

    def _reverse(self, action: HistoryAction, done: Set[str], step: str):
        store = self._store
        files = self._group.files

        if isinstance(action, UpdateAction):
            f = self._file(action, action.lang, step)
            if action.old_value is None:
                call = lambda: store.remove_key(f, action.key)
            else:
                call = lambda: store.set_value(f, action.key, action.old_value)
            self._run(action, {f.path: call}, done, step)

        elif isinstance(action, RenameAction):
            self._run(action, {
                f.path: (lambda f=f: store.rename_key(f, action.new_key, action.old_key))
                for f in files
            }, done, step)

        elif isinstance(action, AddAction):
            self._run(action, {
                f.path: (lambda f=f: store.remove_key(f, action.key))
                for f in files
            }, done, step)

        elif isinstance(action, DeleteAction):
            self._run(action, {
                f.path: (lambda f=f: store.insert_key_at(
                    f, action.key, action.row.values.get(f.lang, ""), action.indices[f.path]))
                for f in files if f.path in action.indices
            }, done, step)

        elif isinstance(action, BatchAction):
            self._reverse_batch(action, done, step)

        else:
            raise TypeError(f"Unknown history action: {action!r}")

    def _reverse_batch(self, action: BatchAction, done: Set[str], step: str):
        children = action.actions
        store = self._store

        if children and all(isinstance(a, DeleteAction) for a in children):
            # Positions are absolute, so one ordered insert per file is
            # the same as undoing each delete in reverse.
            inserts: Dict[str, List[ResxInsert]] = {}
            for child in children:
                for f in self._group.files:
                    if f.path in child.indices:
                        inserts.setdefault(f.path, []).append(ResxInsert(
                            child.key, child.row.values.get(f.lang, ""), child.indices[f.path]))
            self._run(action, {
                f.path: (lambda f=f: store.batch_insert_keys(f, inserts[f.path]))
                for f in self._group.files if f.path in inserts
            }, done, step)
            return

        if children and all(isinstance(a, UpdateAction) and a.old_value is not None
                            for a in children):
            updates: Dict[str, Dict[str, str]] = {}
            for child in reversed(children):
                f = self._file(action, child.lang, step)
                updates.setdefault(f.path, {})[child.key] = child.old_value
            self._run(action, {
                f.path: (lambda f=f: store.batch_set_values(f, updates[f.path]))
                for f in self._group.files if f.path in updates
            }, done, step)
            return

        total = len(children)
        for i in reversed(range(total)):
            marker = f"{step}#{i}"
            if marker in done:
                continue
            self._reverse(children[i], done, f"{marker}/")
            done.add(marker)

    def _file(self, action: HistoryAction, lang: str, step: str):
        f = self._group.file_for(lang)
        if f is None:
            raise UndoReversalFailure(action, self._label(step, lang),
                                      StoreIOFailure(lang, "No file for this language"))
        return f

    def _run(self, action: HistoryAction, calls: Dict[str, Callable[[], object]],
             done: Set[str], step: str):
        pending = {path: call for path, call in calls.items() if step + path not in done}
        try:
            self._fanout.run(pending)
        except PartialFanoutFailure as e:
            done.update(step + path for path in e.succeeded)
            path, cause = next(iter(e.failures.items()))
            raise UndoReversalFailure(action, self._label(step, path), cause) from e
        except EditError as e:
            path = getattr(e, "path", "") or next(iter(pending), "")
            raise UndoReversalFailure(action, self._label(step, path), e) from e
        done.update(step + path for path in pending)

    @staticmethod
    def _label(step: str, path: str) -> str:
        """Readable step name such as ``step 3 of batch, Strings.sv.resx``."""
        parts = [f"step {int(p) + 1} of batch" for p in step.replace("/", "").split("#")[1:]]
        parts.append(path)
        return ", ".join(parts)
