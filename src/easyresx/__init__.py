# SPDX-License-Identifier: GPL-3.0-or-later
"""EasyResX — edit groups of .NET resource files as one table."""

__version__ = "0.3.0"
APP_ID = "se.easyresx.EasyResX"
