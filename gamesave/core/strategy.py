"""Backup strategy — storage operations shared by the directory and single-file variants."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from loguru import logger

from gamesave.core.name_codec import NameFormatCodec
from gamesave.core.status import Severity, StatusBoard
from gamesave.errors import (
    DuplicateNameError,
    GameSaveError,
    MalformedBackupName,
    NoRevertAvailableError,
    NotFoundError,
)
from gamesave.models.game_config import StrategyType
from gamesave.models.monitoring import MonitoringSnapshot
from gamesave.utils import modified_time, same_entry

if TYPE_CHECKING:
    from gamesave.models.backup_identity import BackupIdentity
    from gamesave.models.game_config import GameConfig


@dataclass
class OperationResult:
    """Outcome of one storage operation."""

    success: bool = True
    severity: Severity = Severity.INFO
    message: str = ""
    error: Exception | None = None


@dataclass
class MonitorTarget:
    """Where a file watcher should look for save activity."""

    path: Path
    pattern: str = "*"


class BackupStrategy(ABC):
    """
    Storage operations for one game.

    Subclasses decide the unit of copy and where backups, the revert
    artifact and automatic backups live; the operations themselves are
    shared. Every public operation reports through the status board and
    returns an OperationResult instead of raising.
    """

    strategy_type: StrategyType

    def __init__(self, game: GameConfig, status: StatusBoard | None = None) -> None:
        self.game = game
        self.status = status or StatusBoard()
        self.codec = NameFormatCodec.for_game(game)

    # ── Layout (per variant) ──

    @property
    @abstractmethod
    def live_save_path(self) -> Path:
        """The save location the game writes to."""

    @property
    @abstractmethod
    def backup_directory(self) -> Path:
        """Directory holding the named backups."""

    @property
    @abstractmethod
    def revert_path(self) -> Path:
        """Location of the one-deep undo snapshot."""

    @property
    def auto_backup_directory(self) -> Path:
        return Path(self.game.user_directory) / self.game.revert_suffix

    @abstractmethod
    def backup_path(self, name: str) -> Path: ...

    @abstractmethod
    def auto_backup_path(self, label: str) -> Path: ...

    @abstractmethod
    def monitor_path(self) -> MonitorTarget: ...

    @abstractmethod
    def _backup_names(self) -> list[str]:
        """Decodable names of every backup, in no particular order."""

    @abstractmethod
    def _watched_file(self, location: Path) -> Path:
        """The file whose timestamp represents a save or backup location."""

    @abstractmethod
    def _copy(self, source: Path, destination: Path) -> None: ...

    @abstractmethod
    def _remove(self, path: Path) -> None: ...

    @abstractmethod
    def _exists(self, path: Path) -> bool: ...

    # ── Queries ──

    def list_backups(self, max_count: int | None = None) -> list[BackupIdentity]:
        """Backups newest first, decoded and truncated to max_count."""
        if not self.backup_directory.is_dir():
            self.status.error(
                f"Backup directory for {self.game.name} not found: {self.backup_directory}"
            )
            return []

        limit = self.game.max_backups if max_count is None else max_count
        try:
            names = self._sorted_names()
        except (GameSaveError, OSError) as e:
            self.status.error(f"Could not list backups for {self.game.name}: {e}")
            return []

        backups: list[BackupIdentity] = []
        for name in names:
            if len(backups) >= limit:
                break
            try:
                backups.append(self.codec.decode(name))
            except MalformedBackupName as e:
                logger.warning(f"Skipping backup with unrecognised name '{name}': {e}")
        self.status.info("Backups loaded successfully.")
        return backups

    def latest_backup_name(self) -> str | None:
        try:
            names = self._sorted_names()
        except (GameSaveError, OSError) as e:
            self.status.error(f"Could not list backups for {self.game.name}: {e}")
            return None
        return names[0] if names else None

    def status_snapshot(self) -> MonitoringSnapshot:
        """Save time, latest backup time and revert presence."""
        names = self._sorted_names()
        if names:
            last_backup_time = modified_time(self._watched_file(self.backup_path(names[0])))
        else:
            last_backup_time = MonitoringSnapshot().last_backup_time
        return MonitoringSnapshot(
            save_time=modified_time(self._watched_file(self.live_save_path)),
            last_backup_time=last_backup_time,
            has_revert_artifact=self._exists(self.revert_path),
        )

    def _sorted_names(self) -> list[str]:
        if not self.backup_directory.is_dir():
            return []
        return sorted(self._backup_names(), reverse=True)

    # ── Operations ──

    def create(self, name: str) -> OperationResult:
        return self._guarded("backup", "Backup completed successfully.", lambda: self._create(name))

    def restore(self, name: str) -> OperationResult:
        return self._guarded("restore", "Restore completed successfully.", lambda: self._restore(name))

    def rename(self, old_name: str, new_name: str) -> OperationResult:
        return self._guarded(
            "rename", "Backup renamed successfully.", lambda: self._rename(old_name, new_name)
        )

    def revert(self) -> OperationResult:
        return self._guarded("revert", "Revert completed successfully.", self._revert)

    def delete(self, name: str) -> OperationResult:
        return self._guarded("delete", "Backup deleted successfully.", lambda: self._delete(name))

    def automatic_backup(self, label: str) -> OperationResult:
        return self._guarded(
            "automatic backup",
            "Automatic backup completed successfully.",
            lambda: self._copy(self.live_save_path, self.auto_backup_path(label)),
        )

    def _create(self, name: str) -> None:
        self._copy(self.live_save_path, self.backup_path(name))
        # A new backup invalidates reverting past it
        if self._exists(self.revert_path):
            self._remove(self.revert_path)

    def _restore(self, name: str) -> None:
        source = self.backup_path(name)
        if not self._exists(source):
            raise NotFoundError(f"Backup {source} not found for game {self.game.name}.")
        if self._exists(self.live_save_path):
            self._copy(self.live_save_path, self.revert_path)
            self.status.info("Revert for backup taken.")
        else:
            self.status.info(f"Game save {self.live_save_path} not found for game {self.game.name}.")
        self._copy(source, self.live_save_path)

    def _rename(self, old_name: str, new_name: str) -> None:
        old_path = self.backup_path(old_name)
        new_path = self.backup_path(new_name)
        if not self._exists(old_path):
            raise NotFoundError(f"Backup not found: {old_path}")

        case_only = str(old_path).casefold() == str(new_path).casefold()
        if self._exists(new_path) and not (case_only and same_entry(old_path, new_path)):
            raise DuplicateNameError(f"A backup named '{new_name}' already exists.")

        if old_path == new_path:
            return
        if case_only:
            # Case-insensitive filesystems treat a direct move as a no-op
            temp_path = new_path.with_name(f"{new_path.name}_temp")
            old_path.rename(temp_path)
            temp_path.rename(new_path)
        else:
            old_path.rename(new_path)

    def _revert(self) -> None:
        if not self._exists(self.revert_path):
            raise NoRevertAvailableError(
                f"Revert location {self.revert_path} not found for game {self.game.name}."
            )
        self._copy(self.revert_path, self.live_save_path)
        self._remove(self.revert_path)

    def _delete(self, name: str) -> None:
        path = self.backup_path(name)
        if not self._exists(path):
            raise NotFoundError(f"Backup not found: {path}")
        self._remove(path)

    def _guarded(self, action: str, success: str, operation: Callable[[], None]) -> OperationResult:
        try:
            operation()
        except (GameSaveError, OSError) as e:
            message = f"Error during {action}: {e}"
            self.status.error(message)
            return OperationResult(success=False, severity=Severity.ERROR, message=message, error=e)
        self.status.info(success)
        return OperationResult(message=success)


def create_strategy(game: GameConfig, status: StatusBoard | None = None) -> BackupStrategy:
    """Build the strategy selected by the game's strategy type."""
    from gamesave.core.directory_strategy import DirectoryStrategy
    from gamesave.core.file_strategy import SingleFileStrategy

    strategy_type = StrategyType(game.strategy_type)
    if strategy_type == StrategyType.PEER_DIRECTORY:
        return DirectoryStrategy(game, status)
    return SingleFileStrategy(game, status)
