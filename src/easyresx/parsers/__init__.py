# SPDX-License-Identifier: GPL-3.0-or-later
"""Resource file parsers."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Union


def safe_parse_xml(path: Union[str, Path]) -> ET.ElementTree:
    """Parse XML with document type declarations rejected (XXE protection).

    Comments are kept in the tree so that rewriting a file does not drop
    the schema documentation that .resx files carry.
    """
    raw = Path(path).read_bytes()
    if b"<!DOCTYPE" in raw or b"<!ENTITY" in raw:
        raise ET.ParseError(f"DTD not allowed in {path}")
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
    parser.feed(raw)
    return ET.ElementTree(parser.close())
