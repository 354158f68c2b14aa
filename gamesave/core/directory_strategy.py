"""Directory strategy — each backup is a full copy of the game's save directory.

Layout:
  {parent_directory}/{game_directory}/            live save
  {user_directory}/{backup name}/                 backups
  {user_directory}/{revert_suffix}/
      ├── {game_directory}_{revert_suffix}/       revert artifact
      └── {label}/                                automatic backups
"""

from __future__ import annotations

import shutil
from pathlib import Path

from gamesave.core.strategy import BackupStrategy, MonitorTarget
from gamesave.models.game_config import StrategyType
from gamesave.utils import copy_directory


class DirectoryStrategy(BackupStrategy):
    """Backs up a whole save directory next to its peers in the user directory."""

    strategy_type = StrategyType.PEER_DIRECTORY

    @property
    def live_save_path(self) -> Path:
        return Path(self.game.parent_directory) / self.game.game_directory

    @property
    def backup_directory(self) -> Path:
        return Path(self.game.user_directory)

    @property
    def revert_path(self) -> Path:
        name = f"{self.game.game_directory}_{self.game.revert_suffix}"
        return self.auto_backup_directory / name

    def backup_path(self, name: str) -> Path:
        return self.backup_directory / name

    def auto_backup_path(self, label: str) -> Path:
        return self.auto_backup_directory / label

    def monitor_path(self) -> MonitorTarget:
        return MonitorTarget(self.live_save_path, "*")

    def _backup_names(self) -> list[str]:
        excluded = [s for s in (self.game.game_directory, self.game.revert_suffix) if s]
        return [
            entry.name
            for entry in self.backup_directory.iterdir()
            if entry.is_dir() and not any(entry.name.endswith(s) for s in excluded)
        ]

    def _watched_file(self, location: Path) -> Path:
        if self.game.save_file is None:
            return location
        return location / self.game.save_file.name

    def _copy(self, source: Path, destination: Path) -> None:
        copy_directory(source, destination)

    def _remove(self, path: Path) -> None:
        shutil.rmtree(path)

    def _exists(self, path: Path) -> bool:
        return path.is_dir()
