# SPDX-License-Identifier: GPL-3.0-or-later
"""EasyResX PySide6 application entry point."""

from __future__ import annotations

import logging
import os
import sys

from PySide6.QtWidgets import QApplication

from easyresx import APP_ID, __version__
from easyresx.services.settings import Settings


class EasyResXApp:
    """Main application wrapper."""

    def __init__(self, argv: list[str]):
        self._argv = argv

        # Work around SIGSEGV in libqcocoa.dylib accessibility bridge (Qt 6 bug).
        if sys.platform == 'darwin':
            os.environ.setdefault("QT_ACCESSIBILITY", "0")

        self._qt_app = QApplication(argv)
        self._qt_app.setApplicationName("EasyResX")
        self._qt_app.setApplicationDisplayName("EasyResX")
        self._qt_app.setApplicationVersion(__version__)
        self._qt_app.setOrganizationName("easyresx")
        self._qt_app.setDesktopFileName(APP_ID)

    def run(self) -> int:
        from easyresx.ui.window import EasyResXWindow
        self._win = EasyResXWindow(Settings.get())
        self._win.show()
        return self._qt_app.exec()


def main():
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")
    app = EasyResXApp(sys.argv)
    sys.exit(app.run())


if __name__ == "__main__":
    main()
