# SPDX-License-Identifier: GPL-3.0-or-later
"""Resource store — grouped .resx files and ordered per-file key CRUD."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

from easyresx.parsers.resx import ResxDocument, ResxInsert
from easyresx.services.errors import StoreIOFailure

log = logging.getLogger(__name__)

DEFAULT_LANG = "default"

T = TypeVar("T")


@dataclass(frozen=True)
class LocalizedFile:
    """One language file of a group."""
    path: str
    lang: str


@dataclass(frozen=True)
class Group:
    """Per-language files sharing one key space; file order is column order."""
    name: str
    directory: str
    files: Tuple[LocalizedFile, ...]

    @property
    def langs(self) -> List[str]:
        return [f.lang for f in self.files]

    def file_for(self, lang: str) -> Optional[LocalizedFile]:
        for f in self.files:
            if f.lang == lang:
                return f
        return None


@dataclass
class Row:
    """Merged view of one key across the languages of a group.

    A language missing from ``values`` is absent from that file, which is
    not the same as an empty string.
    """
    key: str
    values: Dict[str, str] = field(default_factory=dict)

    def display(self, lang: str) -> str:
        return self.values.get(lang, "")

    def copy(self) -> Row:
        return Row(self.key, dict(self.values))


def split_language(stem: str) -> Tuple[str, str]:
    """Split ``Strings.sv-SE`` into ``("Strings", "sv-SE")``.

    The last dotted part counts as a language tag when it is at most ten
    characters long and starts with an ASCII letter.
    """
    parts = stem.split(".")
    if len(parts) > 1:
        candidate = parts[-1]
        if candidate and len(candidate) <= 10 and candidate[0].isascii() and candidate[0].isalpha():
            return ".".join(parts[:-1]), candidate
    return stem, DEFAULT_LANG


def _file_order(f: LocalizedFile) -> Tuple[int, str]:
    return (0 if f.lang == DEFAULT_LANG else 1, f.lang)


def scan_directory(directory: Union[str, Path]) -> List[Group]:
    """Find every .resx file below *directory* and group them by base name."""
    root = Path(directory)
    if not root.is_dir():
        raise StoreIOFailure(str(root), "Not a directory")

    found: Dict[Tuple[str, str], List[LocalizedFile]] = {}
    for path in sorted(root.rglob("*")):
        if path.suffix.lower() != ".resx" or not path.is_file():
            continue
        name, lang = split_language(path.stem)
        parent = str(path.parent)
        found.setdefault((parent, name), []).append(LocalizedFile(str(path), lang))

    groups = [
        Group(name=name, directory=parent, files=tuple(sorted(files, key=_file_order)))
        for (parent, name), files in found.items()
    ]
    groups.sort(key=lambda g: (g.name, g.directory))
    log.info("Scanned %s: %d group(s)", root, len(groups))
    return groups


class ResourceStore:
    """Ordered key/value CRUD over .resx files.

    Every call loads the file, applies one edit and writes it back while
    holding a per-file lock, so calls for different files may run in
    parallel and calls for the same file never interleave. Failures are
    raised as :class:`StoreIOFailure`.
    """

    def __init__(self):
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # ── Group level ───────────────────────────────────────────────

    def scan(self, directory: Union[str, Path]) -> List[Group]:
        return scan_directory(directory)

    def load_rows(self, files: Sequence[LocalizedFile]) -> List[Row]:
        """Merge all files into rows; unreadable files are skipped."""
        rows: Dict[str, Row] = {}
        for f in files:
            try:
                entries = self._read(f, lambda doc: doc.entries())
            except StoreIOFailure as e:
                log.warning("Skipping unreadable file %s", e)
                continue
            for key, value in entries.items():
                rows.setdefault(key, Row(key)).values[f.lang] = value
        return list(rows.values())

    def keys(self, file: LocalizedFile) -> List[str]:
        """Keys of one file in storage order."""
        return self._read(file, lambda doc: doc.keys())

    # ── Single key ────────────────────────────────────────────────

    def set_value(self, file: LocalizedFile, key: str, value: str) -> None:
        self._edit(file, lambda doc: doc.set_value(key, value))

    def insert_key(self, file: LocalizedFile, key: str, value: str = "") -> None:
        self._edit(file, lambda doc: doc.insert(key, value))

    def insert_key_at(self, file: LocalizedFile, key: str, value: str, position: int) -> None:
        self._edit(file, lambda doc: doc.insert(key, value, position))

    def remove_key(self, file: LocalizedFile, key: str) -> Optional[int]:
        return self._edit(file, lambda doc: doc.remove(key))

    def rename_key(self, file: LocalizedFile, old_key: str, new_key: str) -> None:
        self._edit(file, lambda doc: doc.rename(old_key, new_key))

    # ── Batches ───────────────────────────────────────────────────

    def batch_remove_keys(self, file: LocalizedFile, keys: Iterable[str]) -> Dict[str, int]:
        keys = list(keys)
        return self._edit(file, lambda doc: doc.remove_many(keys))

    def batch_insert_keys(self, file: LocalizedFile, items: Iterable[ResxInsert]) -> None:
        items = list(items)
        self._edit(file, lambda doc: doc.insert_many(items))

    def batch_set_values(self, file: LocalizedFile, updates: Dict[str, str]) -> None:
        def apply(doc: ResxDocument) -> None:
            for key, value in updates.items():
                doc.set_value(key, value)
        self._edit(file, apply)

    # ── Private ───────────────────────────────────────────────────

    def _lock(self, path: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(path, threading.Lock())

    def _read(self, file: LocalizedFile, read: Callable[[ResxDocument], T]) -> T:
        with self._lock(file.path):
            try:
                return read(ResxDocument.load(file.path))
            except (OSError, ValueError) as e:
                raise StoreIOFailure(file.path, str(e)) from e

    def _edit(self, file: LocalizedFile, edit: Callable[[ResxDocument], T]) -> T:
        # ResxError and encoding errors are both ValueErrors.
        with self._lock(file.path):
            try:
                doc = ResxDocument.load(file.path)
                result = edit(doc)
                if doc.modified:
                    doc.save()
            except (OSError, ValueError) as e:
                raise StoreIOFailure(file.path, str(e)) from e
        log.debug("%s: edited", file.path)
        return result
