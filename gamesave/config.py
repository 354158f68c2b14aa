"""Application configuration — one JSON file in the data directory, written atomically."""

from __future__ import annotations

import copy
import json
import threading
from pathlib import Path
from typing import Any

from loguru import logger

_instance: "Config | None" = None

# Default data directory
_DEFAULT_DATA_DIR = Path.home() / "Documents" / "GameSaveManager"


def get_config() -> Config:
    """Module-level factory — single global Config instance."""
    global _instance
    if _instance is None:
        _instance = Config()
    return _instance


def reset_config() -> None:
    """Reset the global config instance (for testing)."""
    global _instance
    _instance = None


def _with_defaults(defaults: dict[str, Any], stored: dict[str, Any]) -> dict[str, Any]:
    """Stored settings over the defaults; sections merge key by key, unknown keys are kept."""
    merged = copy.deepcopy(defaults)
    for key, value in stored.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _with_defaults(merged[key], value)
        else:
            merged[key] = value
    return merged


class Config:
    """
    Application settings stored in ``config.json``.

    Top-level keys hold the general settings; the ``monitor`` section holds
    the sampler timing. Every change is written straight back to disk.
    """

    _DEFAULTS: dict[str, Any] = {
        "last_selected_game": "",
        "games_file": "games.json",
        "log_level": "INFO",
        # 0 errors only, 1 user messages, 2 info messages
        "message_level": 1,
        "monitor": {
            "interval": 1.0,
            "quiet_window": 10.0,
        },
    }

    def __init__(self, data_dir: Path | None = None) -> None:
        self._dir = data_dir or _DEFAULT_DATA_DIR
        self._path = self._dir / "config.json"
        self._lock = threading.Lock()
        self._data = _with_defaults(self._DEFAULTS, self._read())

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            stored = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Unreadable settings at {self._path}, using defaults: {e}")
            return {}
        if not isinstance(stored, dict):
            logger.warning(f"Ignoring settings at {self._path}: expected a JSON object")
            return {}
        return stored

    def _write(self) -> None:
        """Replace config.json through a temporary file so a crash never truncates it."""
        with self._lock:
            self._dir.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(".tmp")
            try:
                text = json.dumps(self._data, ensure_ascii=False, indent=2)
                tmp_path.write_text(text, encoding="utf-8")
                tmp_path.replace(self._path)
            except OSError as e:
                logger.error(f"Failed to save settings: {e}")
                tmp_path.unlink(missing_ok=True)

    # ── Generic access ──

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a setting; ``section.key`` reaches into a section."""
        section, _, name = key.rpartition(".")
        node = self._data.get(section, {}) if section else self._data
        if not isinstance(node, dict):
            return default
        return node.get(name, default)

    def set(self, key: str, value: Any) -> None:
        """Change a setting (``section.key`` for a section member) and save."""
        section, _, name = key.rpartition(".")
        node = self._data.setdefault(section, {}) if section else self._data
        node[name] = value
        self._write()

    # ── Typed properties ──

    @property
    def data_dir(self) -> Path:
        return self._dir

    @property
    def games_path(self) -> Path:
        return self._dir / self._data.get("games_file", "games.json")

    @property
    def log_dir(self) -> Path:
        return self._dir / "logs"

    @property
    def last_selected_game(self) -> str:
        return self._data.get("last_selected_game", "")

    @last_selected_game.setter
    def last_selected_game(self, value: str) -> None:
        self.set("last_selected_game", value)

    @property
    def log_level(self) -> str:
        return str(self._data.get("log_level", "INFO")).upper()

    @property
    def message_level(self) -> int:
        return int(self._data.get("message_level", 1))

    @message_level.setter
    def message_level(self, value: int) -> None:
        self.set("message_level", value)

    @property
    def monitor_interval(self) -> float:
        return float(self.get("monitor.interval", 1.0))

    @property
    def quiet_window(self) -> float:
        return float(self.get("monitor.quiet_window", 10.0))
