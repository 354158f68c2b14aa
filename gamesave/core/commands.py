"""Silent commands — restore or back up the last-used game without any prompt.

Both are safe to call repeatedly and do nothing but report a message when
there is no game or no earlier backup to work from.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from loguru import logger

from gamesave.core.status import Severity, StatusBoard
from gamesave.core.strategy import OperationResult

if TYPE_CHECKING:
    from gamesave.config import Config
    from gamesave.core.backup_set import GameBackupSet
    from gamesave.data.game_library import GameLibrary


class SilentCommands:
    """Entry points for the external command channel (``--restore`` / ``--backup``)."""

    def __init__(self, library: GameLibrary, config: Config, status: StatusBoard) -> None:
        self._library = library
        self._config = config
        self._status = status

    def _last_used_game(self, action: str) -> GameBackupSet | None:
        name = self._config.last_selected_game
        if self._library.count == 0:
            self._status.user(f"No games configured, nothing to {action}.")
            return None
        game = self._library.get(name) if name else None
        if game is None:
            self._status.user(f"Could not find last selected game '{name}', nothing to {action}.")
        return game

    def _noop(self, message: str) -> OperationResult:
        self._status.user(message)
        return OperationResult(success=False, severity=Severity.USER, message=message)

    def restore_most_recent(self) -> OperationResult:
        """Restore the newest backup of the last-used game."""
        self._status.clear()
        game = self._last_used_game("restore")
        if game is None:
            return OperationResult(success=False, severity=Severity.USER, message=self._status.text)

        backups = game.load_backups() if game.strategy.latest_backup_name() else []
        if not backups:
            return self._noop(f"No backups found for game: {game.name}.")

        backup = backups[0]
        name = game.codec.encode(backup)
        result = game.restore(backup)
        if result.success:
            self._status.user(
                f"Silent restore at {datetime.now():%H:%M} completed from backup ({name})."
            )
            logger.info(f"Silent restore of {game.name} from {name}")
        return result

    def backup_with_previous_tag(self) -> OperationResult:
        """Back up the last-used game, carrying over the newest backup's tag."""
        self._status.clear()
        game = self._last_used_game("back up")
        if game is None:
            return OperationResult(success=False, severity=Severity.USER, message=self._status.text)

        latest = game.strategy.latest_backup_name()
        if latest is None:
            return self._noop(
                f"No existing backups found for game: {game.name}. "
                "Please create a backup manually first."
            )

        backup = game.new_backup(latest)
        result = game.backup(backup)
        if result.success:
            name = game.codec.encode(backup)
            self._status.user(f"Silent backup at {datetime.now():%H:%M} completed ({name}).")
            logger.info(f"Silent backup of {game.name} as {name}")
        return result
