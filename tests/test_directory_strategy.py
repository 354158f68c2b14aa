"""Tests for the directory backup strategy."""

from __future__ import annotations

from pathlib import Path

import pytest

from gamesave.core.directory_strategy import DirectoryStrategy
from gamesave.core.status import Severity, StatusBoard
from gamesave.core.strategy import create_strategy
from gamesave.errors import DuplicateNameError, NoRevertAvailableError, NotFoundError
from gamesave.models.game_config import GameConfig, SaveFileSpec
from gamesave.models.monitoring import MonitoringStatus, classify_status

FIRST = "slot1 2024-03-09 v001 first"
SECOND = "slot1 2024-03-10 v002 second"


@pytest.fixture
def game(tmp_path: Path) -> GameConfig:
    live = tmp_path / "saves" / "slot1"
    live.mkdir(parents=True)
    (live / "data.bin").write_bytes(b"original")
    (tmp_path / "backups").mkdir()
    return GameConfig(
        name="Dir Game",
        parent_directory=str(tmp_path / "saves"),
        user_directory=str(tmp_path / "backups"),
        game_directory="slot1",
        name_format="GsDsVsT R",
        save_file=SaveFileSpec("data", "bin"),
    )


@pytest.fixture
def strategy(game: GameConfig) -> DirectoryStrategy:
    return DirectoryStrategy(game, StatusBoard())


def _live(strategy: DirectoryStrategy) -> Path:
    return strategy.live_save_path / "data.bin"


class TestLayout:
    def test_factory_selects_directory_strategy(self, game: GameConfig) -> None:
        assert isinstance(create_strategy(game), DirectoryStrategy)

    def test_paths(self, strategy: DirectoryStrategy, tmp_path: Path) -> None:
        assert strategy.live_save_path == tmp_path / "saves" / "slot1"
        assert strategy.backup_path(FIRST) == tmp_path / "backups" / FIRST
        assert strategy.revert_path == tmp_path / "backups" / "revert" / "slot1_revert"
        assert strategy.auto_backup_path("007") == tmp_path / "backups" / "revert" / "007"
        assert strategy.monitor_path().path == strategy.live_save_path


class TestCreateAndList:
    def test_create_copies_directory(self, strategy: DirectoryStrategy) -> None:
        result = strategy.create(FIRST)
        assert result.success
        assert (strategy.backup_path(FIRST) / "data.bin").read_bytes() == b"original"

    def test_list_newest_first(self, strategy: DirectoryStrategy) -> None:
        strategy.create(FIRST)
        strategy.create(SECOND)
        backups = strategy.list_backups()
        assert [b.tag for b in backups] == ["second", "first"]
        assert strategy.latest_backup_name() == SECOND

    def test_list_truncates(self, strategy: DirectoryStrategy) -> None:
        strategy.create(FIRST)
        strategy.create(SECOND)
        assert len(strategy.list_backups(max_count=1)) == 1

    def test_list_skips_revert_and_unrecognised(self, strategy: DirectoryStrategy) -> None:
        strategy.create(FIRST)
        strategy.restore(FIRST)
        (strategy.backup_directory / "notes").mkdir()
        backups = strategy.list_backups()
        assert [b.tag for b in backups] == ["first"]

    def test_list_missing_directory(self, game: GameConfig, tmp_path: Path) -> None:
        game.user_directory = str(tmp_path / "missing")
        status = StatusBoard()
        assert DirectoryStrategy(game, status).list_backups() == []
        assert status.severity == Severity.ERROR

    def test_create_without_live_save_fails(self, strategy: DirectoryStrategy) -> None:
        _live(strategy).unlink()
        strategy.live_save_path.rmdir()
        result = strategy.create(FIRST)
        assert not result.success
        assert isinstance(result.error, NotFoundError)


class TestRestoreAndRevert:
    def test_restore_takes_revert(self, strategy: DirectoryStrategy) -> None:
        strategy.create(FIRST)
        _live(strategy).write_bytes(b"progress")

        assert strategy.restore(FIRST).success
        assert _live(strategy).read_bytes() == b"original"
        assert (strategy.revert_path / "data.bin").read_bytes() == b"progress"

    def test_restored_status(self, strategy: DirectoryStrategy) -> None:
        strategy.create(FIRST)
        _live(strategy).write_bytes(b"progress")
        strategy.restore(FIRST)
        assert classify_status(strategy.status_snapshot()) == MonitoringStatus.RESTORED

    def test_revert_undoes_restore(self, strategy: DirectoryStrategy) -> None:
        strategy.create(FIRST)
        _live(strategy).write_bytes(b"progress")
        strategy.restore(FIRST)

        assert strategy.revert().success
        assert _live(strategy).read_bytes() == b"progress"
        assert not strategy.revert_path.exists()

    def test_revert_without_artifact(self, strategy: DirectoryStrategy) -> None:
        result = strategy.revert()
        assert not result.success
        assert isinstance(result.error, NoRevertAvailableError)
        assert _live(strategy).read_bytes() == b"original"

    def test_restore_missing_backup(self, strategy: DirectoryStrategy) -> None:
        result = strategy.restore(FIRST)
        assert isinstance(result.error, NotFoundError)
        assert _live(strategy).read_bytes() == b"original"

    def test_new_backup_discards_revert(self, strategy: DirectoryStrategy) -> None:
        strategy.create(FIRST)
        strategy.restore(FIRST)
        assert strategy.revert_path.exists()
        strategy.create(SECOND)
        assert not strategy.revert_path.exists()


class TestRenameAndDelete:
    def test_rename(self, strategy: DirectoryStrategy) -> None:
        strategy.create(FIRST)
        assert strategy.rename(FIRST, SECOND).success
        assert not strategy.backup_path(FIRST).exists()
        assert (strategy.backup_path(SECOND) / "data.bin").read_bytes() == b"original"

    def test_case_only_rename(self, strategy: DirectoryStrategy) -> None:
        strategy.create(FIRST)
        renamed = FIRST.replace("first", "First")
        assert strategy.rename(FIRST, renamed).success
        assert [entry.name for entry in strategy.backup_directory.iterdir()] == [renamed]
        assert (strategy.backup_path(renamed) / "data.bin").read_bytes() == b"original"

    def test_rename_onto_existing_fails(self, strategy: DirectoryStrategy) -> None:
        strategy.create(FIRST)
        _live(strategy).write_bytes(b"later")
        strategy.create(SECOND)

        result = strategy.rename(FIRST, SECOND)
        assert isinstance(result.error, DuplicateNameError)
        assert (strategy.backup_path(FIRST) / "data.bin").read_bytes() == b"original"
        assert (strategy.backup_path(SECOND) / "data.bin").read_bytes() == b"later"

    def test_rename_missing(self, strategy: DirectoryStrategy) -> None:
        assert isinstance(strategy.rename(FIRST, SECOND).error, NotFoundError)

    def test_delete(self, strategy: DirectoryStrategy) -> None:
        strategy.create(FIRST)
        assert strategy.delete(FIRST).success
        assert not strategy.backup_path(FIRST).exists()

    def test_automatic_backup(self, strategy: DirectoryStrategy) -> None:
        assert strategy.automatic_backup("001").success
        assert (strategy.auto_backup_path("001") / "data.bin").read_bytes() == b"original"
