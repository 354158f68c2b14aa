"""Single-file strategy — each backup is a copy of the one save file.

Layout:
  {parent_directory}/{prefix}.{ext}                                live save
  {user_directory}[/{game_directory}]/{backup name}.{ext}          backups
  {user_directory}[/{game_directory}]/{prefix}.{ext}.{revert}      revert artifact
  {user_directory}/{revert_suffix}/{label}.{ext}                   automatic backups
"""

from __future__ import annotations

from pathlib import Path

from gamesave.core.strategy import BackupStrategy, MonitorTarget
from gamesave.errors import NotFoundError
from gamesave.models.game_config import SaveFileSpec, StrategyType
from gamesave.utils import copy_file


class SingleFileStrategy(BackupStrategy):
    """Backs up one save file into a directory subordinate to the user directory."""

    strategy_type = StrategyType.SUBORDINATE_USER_FILE

    @property
    def save_file(self) -> SaveFileSpec:
        if self.game.save_file is None:
            raise NotFoundError(f"No save file configured for game {self.game.name}.")
        return self.game.save_file

    @property
    def live_save_path(self) -> Path:
        return Path(self.game.parent_directory) / self.save_file.name

    @property
    def backup_directory(self) -> Path:
        user_directory = Path(self.game.user_directory)
        if self.game.game_directory:
            return user_directory / self.game.game_directory
        return user_directory

    @property
    def revert_path(self) -> Path:
        return self.backup_directory / f"{self.save_file.name}.{self.game.revert_suffix}"

    def backup_path(self, name: str) -> Path:
        suffix = self.codec.extension_text
        if suffix and not name.endswith(suffix):
            name += suffix
        return self.backup_directory / name

    def auto_backup_path(self, label: str) -> Path:
        return self.auto_backup_directory / f"{label}{self.codec.extension_text}"

    def monitor_path(self) -> MonitorTarget:
        return MonitorTarget(Path(self.game.parent_directory), f"{self.save_file.prefix}.*")

    def _backup_names(self) -> list[str]:
        suffix = self.codec.extension_text
        revert_name = self.revert_path.name
        names = []
        for entry in self.backup_directory.iterdir():
            if not entry.is_file() or not entry.name.endswith(suffix) or entry.name == revert_name:
                continue
            # The extension is folded into the path unless the grammar renders it
            if suffix and not self.codec.uses_extension:
                names.append(entry.name[: -len(suffix)])
            else:
                names.append(entry.name)
        return names

    def _watched_file(self, location: Path) -> Path:
        return location

    def _copy(self, source: Path, destination: Path) -> None:
        copy_file(source, destination)

    def _remove(self, path: Path) -> None:
        path.unlink()

    def _exists(self, path: Path) -> bool:
        return path.is_file()
