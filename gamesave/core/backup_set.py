"""Game backup set — one configured game with its strategy, codec and monitor."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Any

from loguru import logger

from gamesave.core.monitor import DEFAULT_INTERVAL, DEFAULT_QUIET_WINDOW, MonitoringEngine
from gamesave.core.name_codec import REUSE_LIMIT, NameFormatCodec, merge_tag
from gamesave.core.status import Severity, StatusBoard
from gamesave.core.strategy import BackupStrategy, OperationResult, create_strategy
from gamesave.errors import GameSaveError, InvalidFormatConfiguration, MalformedBackupName
from gamesave.models.monitoring import MonitoringMode

if TYPE_CHECKING:
    from gamesave.core.dispatcher import Dispatcher
    from gamesave.core.monitor import Observer
    from gamesave.models.backup_identity import BackupIdentity
    from gamesave.models.game_config import GameConfig


class GameBackupSet:
    """
    Backup operations for one game.

    Manual backups go through the codec (date, version, reuse and tag are
    updated on the identity before the copy); storage work is delegated to
    the configured strategy. The set owns its MonitoringEngine for its whole
    lifetime; close() tears it down without touching backups on disk.
    """

    def __init__(
        self,
        config: GameConfig,
        status: StatusBoard | None = None,
        dispatcher: Dispatcher | None = None,
        monitor_interval: float = DEFAULT_INTERVAL,
        quiet_window: float = DEFAULT_QUIET_WINDOW,
    ) -> None:
        self.config = config
        self.status = status or StatusBoard()
        self._dispatcher = dispatcher
        self.strategy: BackupStrategy = create_strategy(config, self.status)
        self.monitor = MonitoringEngine(
            self.strategy,
            mode=config.monitoring_mode,
            dispatcher=dispatcher,
            status=self.status,
            interval=monitor_interval,
            quiet_window=quiet_window,
        )

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def codec(self) -> NameFormatCodec:
        return self.strategy.codec

    def __repr__(self) -> str:
        return f"GameBackupSet({self.name!r}, {self.config.strategy_type})"

    # ── Configuration ──

    def update(self, **changes: Any) -> None:
        """
        Edit configuration fields.

        Every value is validated before any is applied; the strategy and codec
        are rebuilt so the change takes effect immediately.
        """
        mode = changes.pop("monitoring_mode", None)
        edited = dataclasses.replace(self.config, **changes)
        self.config = edited
        self.strategy = create_strategy(edited, self.status)
        self.monitor.strategy = self.strategy
        if mode is not None:
            self.monitor.mode = mode
        logger.info(f"Updated configuration of {self.name}")

    def clone_with_copy_name(self) -> GameBackupSet:
        config = dataclasses.replace(
            self.config, name=f"{self.config.name} - Copy", monitoring_mode=MonitoringMode.OFF
        )
        return GameBackupSet(
            config,
            status=self.status,
            dispatcher=self._dispatcher,
            monitor_interval=self.monitor.interval,
            quiet_window=self.monitor.quiet_window.total_seconds(),
        )

    # ── Backups ──

    def load_backups(self) -> list[BackupIdentity]:
        return self.strategy.list_backups(self.config.max_backups)

    def new_backup(self, from_name: str | None = None) -> BackupIdentity:
        """
        Identity to base the next backup on.

        Decoded from from_name, else from the latest backup, else a fresh
        identity at the initial version.
        """
        name = from_name or self.strategy.latest_backup_name()
        if name:
            try:
                return self.codec.decode(name)
            except MalformedBackupName as e:
                logger.warning(f"Starting a fresh backup identity for {self.name}: {e}")
        return self.codec.fresh_identity()

    def backup(self, identity: BackupIdentity, new_tag: str | None = None) -> OperationResult:
        """
        Take a manual backup.

        Reuse resets, the date becomes today, the version goes up one unit and
        the tag is merged with new_tag (kept as is when new_tag is None).
        Raises EmptyTagError for an empty new_tag before anything changes.
        A version past the format's width is reported as a failed result and
        the identity keeps its old fields.
        """
        tag = identity.tag if new_tag is None else merge_tag(identity.tag, new_tag, self.config.parts)
        candidate = dataclasses.replace(identity, reuse=0, date=self.codec.current_date(), tag=tag)
        self.codec.increment_version(candidate)
        try:
            name = self.codec.encode(candidate)
        except InvalidFormatConfiguration as e:
            message = f"Error during backup: {e}"
            self.status.error(message)
            return OperationResult(success=False, severity=Severity.ERROR, message=message, error=e)

        result = self.strategy.create(name)
        if result.success:
            identity.reuse = candidate.reuse
            identity.date = candidate.date
            identity.version = candidate.version
            identity.tag = candidate.tag
        return result

    def restore(self, identity: BackupIdentity) -> OperationResult:
        """
        Restore a backup, then record the reuse in its name.

        At the reuse limit a new backup is taken instead of renaming.
        """
        old_name = self.codec.encode(identity)
        result = self.strategy.restore(old_name)
        if not result.success or not self.codec.uses_reuse:
            return result

        reuse = identity.reuse + 1
        if reuse >= REUSE_LIMIT:
            logger.info(f"Reuse limit reached for '{old_name}', taking a new backup")
            return self.backup(identity)
        identity.reuse = reuse
        result = self.strategy.rename(old_name, self.codec.encode(identity))
        if not result.success:
            identity.reuse -= 1
        return result

    def rename(self, identity: BackupIdentity, new_tag: str) -> OperationResult:
        """Merge new_tag into the identity's tag and rename the backup to match."""
        old_tag = identity.tag
        old_name = self.codec.encode(identity)
        identity.tag = merge_tag(old_tag, new_tag, self.config.parts)
        new_name = self.codec.encode(identity)
        if new_name == old_name:
            return OperationResult(message="Backup name unchanged.")

        result = self.strategy.rename(old_name, new_name)
        if not result.success:
            identity.tag = old_tag
        return result

    def delete(self, identity: BackupIdentity) -> OperationResult:
        return self.strategy.delete(self.codec.encode(identity))

    def revert(self) -> OperationResult:
        return self.strategy.revert()

    # ── Monitoring ──

    def gain_focus(self, observer: Observer | None = None) -> None:
        """Attach an observer, refresh the status and sample if monitoring is on."""
        if observer is not None:
            self.monitor.attach(observer)
        try:
            self.monitor.refresh()
        except (GameSaveError, OSError) as e:
            self.status.error(f"Could not read save status for {self.name}: {e}")
        if self.monitor.is_monitoring:
            self.monitor.start()

    def lose_focus(self, observer: Observer | None = None) -> None:
        self.monitor.stop(observer)

    def close(self) -> None:
        self.monitor.stop()
