"""Shared fixtures for EasyResX tests."""
import os
import sys
from pathlib import Path
from xml.sax.saxutils import escape, quoteattr

import pytest

# Widgets are created in tests; no display is needed.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Ensure src is on path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

RESX_HEADER = """<?xml version="1.0" encoding="utf-8"?>
<root>
  <!--
    Microsoft ResX Schema

    Version 2.0
  -->
  <xsd:schema id="root" xmlns="" xmlns:xsd="http://www.w3.org/2001/XMLSchema" xmlns:msdata="urn:schemas-microsoft-com:xml-msdata">
    <xsd:element name="root" msdata:IsDataSet="true" />
  </xsd:schema>
  <resheader name="resmimetype">
    <value>text/microsoft-resx</value>
  </resheader>
  <resheader name="version">
    <value>2.0</value>
  </resheader>
"""


def resx_text(entries):
    """Build the text of a .resx file from (key, value) pairs."""
    body = "".join(
        f'  <data name={quoteattr(key)} xml:space="preserve">\n'
        f"    <value>{escape(value)}</value>\n"
        f"  </data>\n"
        for key, value in entries
    )
    return RESX_HEADER + body + "</root>\n"


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """A QApplication for timers, file watchers and widgets."""
    from PySide6.QtWidgets import QApplication
    app = QApplication.instance() or QApplication([])
    yield app


# Patch QCoreApplication.translate to avoid needing translations
@pytest.fixture(autouse=True)
def patch_qt_translate(monkeypatch):
    """Replace QCoreApplication.translate with a no-op."""
    try:
        from PySide6.QtCore import QCoreApplication
        monkeypatch.setattr(
            QCoreApplication, "translate",
            staticmethod(lambda ctx, text, *args: text),
        )
    except Exception:
        pass


@pytest.fixture
def write_resx(tmp_path):
    """Write a .resx file below tmp_path and return its path."""
    def _write(name, entries):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(resx_text(entries), "utf-8")
        return path
    return _write


@pytest.fixture
def make_group(tmp_path, write_resx):
    """Create one file per language and return the scanned Group.

    ``files`` maps language ("default" for the neutral file) to a list of
    (key, value) pairs in storage order.
    """
    def _make(files, name="Strings"):
        from easyresx.services.store import scan_directory
        for lang, entries in files.items():
            suffix = "" if lang == "default" else f".{lang}"
            write_resx(f"{name}{suffix}.resx", entries)
        groups = [g for g in scan_directory(tmp_path) if g.name == name]
        assert len(groups) == 1
        return groups[0]
    return _make


@pytest.fixture
def confirmations():
    """Answers for the destructive-action prompt, plus a log of prompts."""
    class _Confirm:
        def __init__(self):
            self.answer = True
            self.prompts = []

        def __call__(self, title, prompt):
            self.prompts.append((title, prompt))
            return self.answer
    return _Confirm()


@pytest.fixture
def open_session(confirmations):
    """Open an EditSession without a file watcher; closed after the test."""
    sessions = []

    def _open(group, **kwargs):
        from easyresx.services.session import EditSession
        session = EditSession(group, confirm=confirmations, **kwargs)
        session.open(watch=False)
        sessions.append(session)
        return session

    yield _open
    for s in sessions:
        s.close()
