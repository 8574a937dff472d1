# SPDX-License-Identifier: GPL-3.0-or-later
"""Settings service — load/save ~/.config/easyresx/settings.json."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

log = logging.getLogger(__name__)

_SETTINGS_FILE = Path.home() / ".config" / "easyresx" / "settings.json"

DEFAULTS: dict[str, Any] = {
    # Working set
    "saved_groups": [],  # [{"name": ..., "directory": ...}]

    # Appearance
    "theme": "light",  # light / dark

    # Editing
    "reload_debounce_ms": 500,
    "fanout_workers": 8,
}


@dataclass(frozen=True)
class SavedGroup:
    """A group remembered across sessions, identified by name and folder."""
    name: str
    directory: str


class Settings:
    """Application settings backed by a JSON file."""

    _instance: Settings | None = None

    def __init__(self):
        self._data: dict[str, Any] = json.loads(json.dumps(DEFAULTS))
        self._load()

    @classmethod
    def get(cls) -> Settings:
        if cls._instance is None:
            cls._instance = Settings()
        return cls._instance

    @classmethod
    def reset_instance(cls):
        cls._instance = None

    # ── Public API ────────────────────────────────────────────────

    def __getitem__(self, key: str) -> Any:
        return self._data.get(key, DEFAULTS.get(key))

    def __setitem__(self, key: str, value: Any):
        self._data[key] = value

    def get_value(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default if default is not None else DEFAULTS.get(key))

    def set_value(self, key: str, value: Any):
        self._data[key] = value

    @property
    def exists(self) -> bool:
        return _SETTINGS_FILE.exists()

    def save(self):
        _SETTINGS_FILE.parent.mkdir(parents=True, exist_ok=True)
        _SETTINGS_FILE.write_text(
            json.dumps(self._data, ensure_ascii=False, indent=2), "utf-8"
        )

    # ── Convenience properties ────────────────────────────────────

    @property
    def saved_groups(self) -> list[SavedGroup]:
        groups = []
        for item in self._data.get("saved_groups") or []:
            if isinstance(item, dict) and item.get("name") and item.get("directory"):
                groups.append(SavedGroup(item["name"], item["directory"]))
        return groups

    @saved_groups.setter
    def saved_groups(self, groups: list[SavedGroup]):
        self._data["saved_groups"] = [
            {"name": g.name, "directory": g.directory} for g in groups
        ]

    @property
    def dark_theme(self) -> bool:
        return self._data.get("theme") == "dark"

    @dark_theme.setter
    def dark_theme(self, dark: bool):
        self._data["theme"] = "dark" if dark else "light"

    # ── Private ───────────────────────────────────────────────────

    def _load(self):
        if not _SETTINGS_FILE.exists():
            return
        try:
            stored = json.loads(_SETTINGS_FILE.read_text("utf-8"))
        except (OSError, ValueError) as e:
            log.warning("Ignoring unreadable settings file %s: %s", _SETTINGS_FILE, e)
            return
        if isinstance(stored, dict):
            self._data.update(stored)
