"""Game library — JSON persistence of every configured game."""

from __future__ import annotations

import json
from dataclasses import asdict, fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger

from gamesave.core.backup_set import GameBackupSet
from gamesave.core.monitor import DEFAULT_INTERVAL, DEFAULT_QUIET_WINDOW
from gamesave.core.path_resolver import from_portable_path, to_portable_path
from gamesave.core.status import StatusBoard
from gamesave.errors import GameSaveError
from gamesave.models.game_config import GameConfig, SaveFileSpec
from gamesave.models.monitoring import MonitoringMode

if TYPE_CHECKING:
    from gamesave.core.dispatcher import Dispatcher

_PATH_FIELDS = ("parent_directory", "user_directory")
_CONFIG_FIELDS = {f.name for f in fields(GameConfig)}


def _game_config_from_dict(data: dict[str, Any]) -> GameConfig:
    """Reconstruct a GameConfig from a dict (loaded from JSON); unknown keys are ignored."""
    values = {key: value for key, value in data.items() if key in _CONFIG_FIELDS}
    save_file = values.pop("save_file", None)
    if isinstance(save_file, dict):
        values["save_file"] = SaveFileSpec(**save_file)
    for key in _PATH_FIELDS:
        if key in values:
            values[key] = from_portable_path(values[key])
    if "initial_version" in values:
        values["initial_version"] = Decimal(str(values["initial_version"]))
    if "monitoring_mode" in values:
        values["monitoring_mode"] = MonitoringMode(values["monitoring_mode"])
    return GameConfig(**values)


def _game_config_to_dict(config: GameConfig) -> dict[str, Any]:
    """Convert a GameConfig to a serializable dict."""
    d = asdict(config)
    for key in _PATH_FIELDS:
        d[key] = to_portable_path(d[key])
    d["initial_version"] = str(config.initial_version)
    d["monitoring_mode"] = str(config.monitoring_mode)
    if d.get("save_file") is None:
        d.pop("save_file", None)
    return d


class GameLibrary:
    """
    Game configuration store — reads/writes games.json.

    Games are keyed by name, compared case-insensitively.
    """

    def __init__(
        self,
        path: Path,
        status: StatusBoard | None = None,
        dispatcher: Dispatcher | None = None,
        monitor_interval: float = DEFAULT_INTERVAL,
        quiet_window: float = DEFAULT_QUIET_WINDOW,
    ) -> None:
        self._path = path
        self._status = status or StatusBoard()
        self._dispatcher = dispatcher
        self._monitor_interval = monitor_interval
        self._quiet_window = quiet_window
        self._games: list[GameBackupSet] = []
        self._version = 1

    def _make_set(self, config: GameConfig) -> GameBackupSet:
        return GameBackupSet(
            config,
            status=self._status,
            dispatcher=self._dispatcher,
            monitor_interval=self._monitor_interval,
            quiet_window=self._quiet_window,
        )

    def load(self) -> None:
        """Load game configurations from disk."""
        self.clear()
        if not self._path.exists():
            logger.info(f"No game library found at: {self._path}")
            return
        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Failed to load game library: {e}")
            return

        self._version = data.get("version", 1)
        for entry in data.get("games", []):
            try:
                self._games.append(self._make_set(_game_config_from_dict(dict(entry))))
            except (TypeError, ValueError, InvalidOperation, GameSaveError) as e:
                name = entry.get("name", "?") if isinstance(entry, dict) else entry
                logger.warning(f"Skipping malformed game entry '{name}': {e}")

    def save(self) -> None:
        """Persist game configurations to disk."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        games = []
        for game in self._games:
            game.config.monitoring_mode = game.monitor.mode
            games.append(_game_config_to_dict(game.config))
        data = {"version": self._version, "games": games}
        tmp = self._path.with_suffix(".tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            tmp.replace(self._path)
        except OSError as e:
            logger.error(f"Failed to save game library: {e}")
            tmp.unlink(missing_ok=True)

    def clear(self) -> None:
        """Remove all games, stopping their monitors."""
        for game in self._games:
            game.close()
        self._games.clear()

    def add(self, config: GameConfig) -> GameBackupSet:
        """Add a game, replacing one with the same name."""
        existing = self.get(config.name)
        if existing is not None:
            self.remove(existing.name)
        game = self._make_set(config)
        self._games.append(game)
        return game

    def add_set(self, game: GameBackupSet) -> None:
        self._games.append(game)

    def remove(self, name: str) -> None:
        """Forget a game. Backups on disk are left alone."""
        game = self.get(name)
        if game is None:
            return
        game.close()
        self._games.remove(game)

    def get(self, name: str) -> GameBackupSet | None:
        folded = name.casefold()
        for game in self._games:
            if game.name.casefold() == folded:
                return game
        return None

    def all_games(self) -> list[GameBackupSet]:
        return list(self._games)

    @property
    def count(self) -> int:
        return len(self._games)
