# SPDX-License-Identifier: GPL-3.0-or-later
"""RESX parser for .NET resource files.

A :class:`ResxDocument` keeps the parsed tree so that single entries can be
edited in place. Untouched elements, comments and whitespace survive a
load/save cycle. The *storage position* of a key is its ordinal among the
``<data>`` children of ``<root>``; it is what :meth:`ResxDocument.remove`
reports and what :meth:`ResxDocument.insert` accepts.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from easyresx.parsers import safe_parse_xml

XML_SPACE = "{http://www.w3.org/XML/1998/namespace}space"

# Characters outside the XML 1.0 Char production.
_INVALID_XML_CHARS = re.compile(
    "[^\x09\x0A\x0D\x20-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]")

# Keep the prefixes used by the embedded resx schema instead of ns0/ns1.
ET.register_namespace("xsd", "http://www.w3.org/2001/XMLSchema")
ET.register_namespace("msdata", "urn:schemas-microsoft-com:xml-msdata")


class ResxError(ValueError):
    """Raised when a RESX document cannot be read or edited."""


@dataclass
class ResxInsert:
    """A key to put back at a recorded storage position."""
    key: str
    value: str
    position: int


class ResxDocument:
    """An editable, order-preserving view of one .resx file."""

    def __init__(self, path: Union[str, Path], tree: ET.ElementTree):
        self.path = Path(path)
        self._tree = tree
        self.modified = False

    @classmethod
    def load(cls, path: Union[str, Path]) -> ResxDocument:
        try:
            tree = safe_parse_xml(path)
        except ET.ParseError as e:
            raise ResxError(f"Invalid XML in RESX file: {e}") from e
        if tree.getroot().tag != "root":
            raise ResxError(f"Not a RESX file (root element is <{tree.getroot().tag}>)")
        return cls(path, tree)

    @property
    def root(self) -> ET.Element:
        return self._tree.getroot()

    # ── Reading ───────────────────────────────────────────────────

    def _data_elements(self) -> List[ET.Element]:
        return [child for child in self.root if child.tag == "data"]

    def _find(self, key: str) -> Optional[Tuple[int, ET.Element]]:
        for position, elem in enumerate(self._data_elements()):
            if elem.get("name") == key:
                return position, elem
        return None

    def keys(self) -> List[str]:
        """Keys in storage order."""
        return [elem.get("name", "") for elem in self._data_elements()]

    def entries(self) -> Dict[str, str]:
        """Key → value, in storage order. Nameless entries are skipped."""
        result: Dict[str, str] = {}
        for elem in self._data_elements():
            name = elem.get("name", "")
            if name:
                result[name] = _value_text(elem)
        return result

    def __contains__(self, key: str) -> bool:
        return self._find(key) is not None

    def __len__(self) -> int:
        return len(self._data_elements())

    def position_of(self, key: str) -> Optional[int]:
        found = self._find(key)
        return found[0] if found else None

    def get_value(self, key: str) -> Optional[str]:
        found = self._find(key)
        return _value_text(found[1]) if found else None

    # ── Editing ───────────────────────────────────────────────────

    def set_value(self, key: str, value: str) -> None:
        """Replace the value of *key*, appending the entry if it is missing."""
        check_xml_text(value)
        found = self._find(key)
        if found is None:
            self.insert(key, value)
            return
        elem = found[1]
        value_elem = elem.find("value")
        if value_elem is None:
            value_elem = ET.SubElement(elem, "value")
        value_elem.text = value
        self.modified = True

    def insert(self, key: str, value: str = "", position: Optional[int] = None) -> int:
        """Insert a new entry before the *position*-th ``<data>`` element.

        Without a position, or with one past the end, the entry is appended
        after the last ``<data>`` element. Returns the resulting position.
        """
        if not key:
            raise ResxError("Key must not be empty")
        check_xml_text(key)
        check_xml_text(value)
        if self._find(key) is not None:
            raise ResxError(f"Key already exists: {key}")

        datas = self._data_elements()
        children = list(self.root)
        self.modified = True

        if position is not None and 0 <= position < len(datas):
            anchor = children.index(datas[position])
            ws = self._whitespace_before(anchor)
            elem = _new_data(key, value, ws)
            # The new element takes over the indentation that preceded the anchor.
            elem.tail = ws
            self.root.insert(anchor, elem)
            return position

        if datas:
            last = children.index(datas[-1])
        elif children:
            last = len(children) - 1
        else:
            elem = _new_data(key, value, "\n  ")
            self.root.text = "\n  "
            elem.tail = "\n"
            self.root.append(elem)
            return 0

        ws = self._whitespace_before(last)
        elem = _new_data(key, value, ws)
        elem.tail = children[last].tail
        children[last].tail = ws
        self.root.insert(last + 1, elem)
        return len(datas)

    def insert_many(self, items: Iterable[ResxInsert]) -> None:
        """Insert several entries at absolute positions.

        Positions refer to the ordering the entries were removed from, so
        inserting in ascending order rebuilds that ordering exactly.
        """
        for item in sorted(items, key=lambda i: i.position):
            self.insert(item.key, item.value, item.position)

    def remove(self, key: str) -> Optional[int]:
        """Remove *key*; return its storage position, or None if absent."""
        found = self._find(key)
        if found is None:
            return None
        position, elem = found
        index = list(self.root).index(elem)
        self._set_whitespace_before(index, elem.tail)
        self.root.remove(elem)
        self.modified = True
        return position

    def remove_many(self, keys: Iterable[str]) -> Dict[str, int]:
        """Remove several keys; positions are measured before any removal."""
        wanted = set(keys)
        positions = {
            elem.get("name", ""): position
            for position, elem in enumerate(self._data_elements())
            if elem.get("name") in wanted
        }
        for key in positions:
            self.remove(key)
        return positions

    def rename(self, old_key: str, new_key: str) -> bool:
        """Rename an entry in place. Returns False if *old_key* is absent."""
        if old_key == new_key:
            return old_key in self
        if not new_key:
            raise ResxError("Key must not be empty")
        check_xml_text(new_key)
        if self._find(new_key) is not None:
            raise ResxError(f"Key already exists: {new_key}")
        found = self._find(old_key)
        if found is None:
            return False
        found[1].set("name", new_key)
        self.modified = True
        return True

    def save(self, path: Optional[Union[str, Path]] = None) -> None:
        """Write the document back (to its own path by default)."""
        target = Path(path) if path is not None else self.path
        with open(target, "wb") as f:
            self._tree.write(f, encoding="utf-8", xml_declaration=True)
        self.modified = False

    # ── Private ───────────────────────────────────────────────────

    def _whitespace_before(self, index: int) -> str:
        if index == 0:
            return self.root.text or ""
        return self.root[index - 1].tail or ""

    def _set_whitespace_before(self, index: int, text: Optional[str]) -> None:
        if index == 0:
            self.root.text = text
        else:
            self.root[index - 1].tail = text


def is_xml_text(text: str) -> bool:
    """True if *text* can be stored in an XML 1.0 document."""
    return _INVALID_XML_CHARS.search(text) is None


def check_xml_text(text: str) -> None:
    match = _INVALID_XML_CHARS.search(text)
    if match is not None:
        raise ResxError(f"Character U+{ord(match.group()):04X} is not allowed in XML")


def _value_text(elem: ET.Element) -> str:
    value_elem = elem.find("value")
    if value_elem is None:
        return ""
    return value_elem.text or ""


def _new_data(key: str, value: str, indent: str) -> ET.Element:
    elem = ET.Element("data", {"name": key, XML_SPACE: "preserve"})
    value_elem = ET.SubElement(elem, "value")
    value_elem.text = value
    if "\n" in indent:
        elem.text = indent + "  "
        value_elem.tail = indent
    return elem


def parse_resx(file_path: Union[str, Path]) -> Dict[str, str]:
    """Parse a .NET RESX file into an ordered key → value mapping."""
    return ResxDocument.load(file_path).entries()


def is_resx_file(file_path: Union[str, Path]) -> bool:
    """Check if file is a RESX file."""
    path = Path(file_path)

    if path.suffix.lower() != '.resx':
        return False

    try:
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read(1000)
    except (OSError, UnicodeDecodeError):
        return False

    return ('<root' in content and
            ('microsoft-resx' in content or 'data name=' in content))
