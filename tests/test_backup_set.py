"""Tests for GameBackupSet — manual backups, restores with reuse, renames."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from gamesave.core.backup_set import GameBackupSet
from gamesave.core.status import Severity, StatusBoard
from gamesave.errors import DuplicateNameError, EmptyTagError, InvalidFormatConfiguration
from gamesave.models.game_config import GameConfig, SaveFileSpec, StrategyType
from gamesave.models.monitoring import MonitoringMode


@pytest.fixture
def config(tmp_path: Path) -> GameConfig:
    saves = tmp_path / "saves"
    saves.mkdir()
    (saves / "slot.sav").write_bytes(b"original")
    return GameConfig(
        name="Elden",
        parent_directory=str(saves),
        user_directory=str(tmp_path / "backups"),
        strategy_type=StrategyType.SUBORDINATE_USER_FILE,
        save_file=SaveFileSpec("slot", "sav"),
        save_prefix="Elden",
    )


@pytest.fixture
def game(config: GameConfig):
    game = GameBackupSet(config, StatusBoard(), monitor_interval=60)
    yield game
    game.close()


def _live(game: GameBackupSet) -> Path:
    return game.strategy.live_save_path


def _names(game: GameBackupSet) -> list[str]:
    return sorted(p.name for p in game.strategy.backup_directory.glob("*.sav"))


class TestManualBackup:
    def test_first_backup_starts_at_initial_version(self, game: GameBackupSet) -> None:
        identity = game.new_backup()
        assert identity.version == Decimal(0)

        assert game.backup(identity, "start").success
        [latest] = game.load_backups()
        assert latest.version == Decimal(1)
        assert latest.tag == "start"
        assert latest.date == game.codec.current_date()

    def test_next_backup_builds_on_latest(self, game: GameBackupSet) -> None:
        game.backup(game.new_backup(), "start")
        game.backup(game.new_backup(), "-boss")
        latest = game.load_backups()[0]
        assert latest.version == Decimal(2)
        assert latest.tag == "start -boss"

    def test_backup_keeps_tag_when_none_given(self, game: GameBackupSet) -> None:
        game.backup(game.new_backup(), "start")
        game.backup(game.new_backup())
        assert [b.tag for b in game.load_backups()] == ["start", "start"]

    def test_empty_tag_rejected_before_any_change(self, game: GameBackupSet) -> None:
        identity = game.new_backup()
        with pytest.raises(EmptyTagError):
            game.backup(identity, "")
        assert identity.version == Decimal(0)
        assert not game.strategy.backup_directory.exists()

    def test_new_backup_from_name(self, game: GameBackupSet) -> None:
        identity = game.new_backup("Elden 2024-01-01 v042 old")
        assert identity.version == Decimal(42)
        assert identity.tag == "old"

    def test_new_backup_from_unreadable_name(self, game: GameBackupSet) -> None:
        assert game.new_backup("garbage").version == Decimal(0)

    def test_version_past_format_width_fails_cleanly(self, game: GameBackupSet) -> None:
        identity = game.new_backup("Elden 2020-01-01 v999 last")
        result = game.backup(identity, "-more")

        assert not result.success
        assert result.severity == Severity.ERROR
        assert isinstance(result.error, InvalidFormatConfiguration)
        assert game.status.severity == Severity.ERROR
        assert identity.version == Decimal(999)
        assert identity.date == "2020-01-01"
        assert identity.tag == "last"
        assert not game.strategy.backup_directory.exists()


class TestRestore:
    def test_restore_counts_reuse(self, game: GameBackupSet) -> None:
        game.backup(game.new_backup(), "start")
        _live(game).write_bytes(b"progress")

        identity = game.load_backups()[0]
        assert game.restore(identity).success
        assert _live(game).read_bytes() == b"original"
        [name] = _names(game)
        assert name.endswith("start (01).sav")
        assert game.load_backups()[0].reuse == 1

    def test_reuse_limit_takes_new_backup(self, game: GameBackupSet) -> None:
        identity = game.codec.fresh_identity()
        identity.version = Decimal(5)
        identity.tag = "worn"
        identity.reuse = 99
        game.strategy.create(game.codec.encode(identity))

        assert game.restore(identity).success
        assert identity.reuse == 0
        assert not any("(100)" in name for name in _names(game))
        latest = game.load_backups()[0]
        assert latest.version == Decimal(6)
        assert latest.reuse == 0
        assert latest.tag == "worn"
        assert len(_names(game)) == 2

    def test_reuse_limit_at_last_version_keeps_backup(self, game: GameBackupSet) -> None:
        identity = game.codec.fresh_identity()
        identity.version = Decimal(999)
        identity.tag = "worn"
        identity.reuse = 99
        name = game.codec.encode(identity)
        game.strategy.create(name)

        result = game.restore(identity)
        assert not result.success
        assert isinstance(result.error, InvalidFormatConfiguration)
        assert identity.reuse == 99
        assert _names(game) == [f"{name}.sav"]

    def test_restore_without_reuse_token(self, config: GameConfig) -> None:
        config.name_format = "PsDsVsT"
        game = GameBackupSet(config)
        game.backup(game.new_backup(), "plain")
        identity = game.load_backups()[0]
        assert game.restore(identity).success
        assert game.load_backups()[0].reuse == 0


class TestRenameAndDelete:
    def test_rename_merges_tag(self, game: GameBackupSet) -> None:
        game.backup(game.new_backup(), "A-old")
        identity = game.load_backups()[0]
        assert game.rename(identity, "-new").success
        assert game.load_backups()[0].tag == "A-new"

    def test_rename_to_same_name(self, game: GameBackupSet) -> None:
        game.backup(game.new_backup(), "same")
        result = game.rename(game.load_backups()[0], "same")
        assert result.success
        assert result.message == "Backup name unchanged."

    def test_failed_rename_restores_tag(self, game: GameBackupSet) -> None:
        first = game.codec.fresh_identity()
        first.tag = "a"
        second = game.codec.fresh_identity()
        second.tag = "b"
        game.strategy.create(game.codec.encode(first))
        game.strategy.create(game.codec.encode(second))

        result = game.rename(first, "b")
        assert isinstance(result.error, DuplicateNameError)
        assert first.tag == "a"
        assert len(_names(game)) == 2

    def test_delete(self, game: GameBackupSet) -> None:
        game.backup(game.new_backup(), "gone")
        assert game.delete(game.load_backups()[0]).success
        assert _names(game) == []

    def test_revert(self, game: GameBackupSet) -> None:
        game.backup(game.new_backup(), "start")
        _live(game).write_bytes(b"progress")
        game.restore(game.load_backups()[0])
        assert game.revert().success
        assert _live(game).read_bytes() == b"progress"


class TestConfiguration:
    def test_update_rebuilds_strategy(self, game: GameBackupSet) -> None:
        old_strategy = game.strategy
        game.update(save_prefix="Tarnished")
        assert game.strategy is not old_strategy
        assert game.monitor.strategy is game.strategy
        assert game.codec.prefix == "Tarnished"

    def test_invalid_update_leaves_config(self, game: GameBackupSet) -> None:
        with pytest.raises(InvalidFormatConfiguration):
            game.update(name_format="PsX")
        assert game.config.name_format == "PsDsVsT R"

    def test_clone(self, game: GameBackupSet) -> None:
        game.update(monitoring_mode=MonitoringMode.PASSIVE)
        clone = game.clone_with_copy_name()
        assert clone.name == "Elden - Copy"
        assert clone.monitor.mode == MonitoringMode.OFF
        assert clone.config is not game.config
        assert clone.config.save_file == game.config.save_file


class TestFocus:
    def test_gain_focus_off_does_not_start(self, game: GameBackupSet) -> None:
        observer = MagicMock()
        game.gain_focus(observer)
        assert not game.monitor.is_running
        observer.assert_called()

    def test_gain_focus_monitoring_starts_and_lose_focus_stops(self, game: GameBackupSet) -> None:
        game.monitor.mode = MonitoringMode.PASSIVE
        game.monitor.stop()
        game.gain_focus()
        assert game.monitor.is_running
        game.lose_focus()
        assert not game.monitor.is_running
