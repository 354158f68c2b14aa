"""Tests for the silent restore/backup commands."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest

from gamesave.config import Config, reset_config
from gamesave.core.commands import SilentCommands
from gamesave.core.status import StatusBoard
from gamesave.data.game_library import GameLibrary
from gamesave.models.game_config import GameConfig, SaveFileSpec, StrategyType


@pytest.fixture(autouse=True)
def _clean_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def status() -> StatusBoard:
    return StatusBoard()


@pytest.fixture
def config(tmp_path: Path) -> Config:
    config = Config(data_dir=tmp_path / "data")
    config.last_selected_game = "Elden"
    return config


@pytest.fixture
def library(tmp_path: Path, status: StatusBoard) -> GameLibrary:
    saves = tmp_path / "saves"
    saves.mkdir()
    (saves / "slot.sav").write_bytes(b"original")
    library = GameLibrary(tmp_path / "data" / "games.json", status)
    library.add(
        GameConfig(
            name="Elden",
            parent_directory=str(saves),
            user_directory=str(tmp_path / "backups"),
            strategy_type=StrategyType.SUBORDINATE_USER_FILE,
            save_file=SaveFileSpec("slot", "sav"),
            save_prefix="Elden",
        )
    )
    return library


@pytest.fixture
def commands(library: GameLibrary, config: Config, status: StatusBoard) -> SilentCommands:
    return SilentCommands(library, config, status)


class TestSilentRestore:
    def test_no_backups(self, commands: SilentCommands, status: StatusBoard) -> None:
        result = commands.restore_most_recent()
        assert not result.success
        assert "No backups found for game: Elden." in status.text

    def test_restores_newest(self, commands: SilentCommands, library: GameLibrary, status) -> None:
        game = library.get("Elden")
        game.backup(game.new_backup(), "first")
        game.strategy.live_save_path.write_bytes(b"progress")

        result = commands.restore_most_recent()
        assert result.success
        assert game.strategy.live_save_path.read_bytes() == b"original"
        assert "Silent restore at" in status.text
        assert game.load_backups()[0].reuse == 1

    def test_unknown_game(self, commands: SilentCommands, config: Config, status) -> None:
        config.last_selected_game = "Missing"
        result = commands.restore_most_recent()
        assert not result.success
        assert "Missing" in status.text

    def test_empty_library(self, config: Config, status: StatusBoard, tmp_path: Path) -> None:
        commands = SilentCommands(GameLibrary(tmp_path / "none.json"), config, status)
        assert not commands.restore_most_recent().success
        assert "No games configured" in status.text


class TestSilentBackup:
    def test_requires_previous_backup(self, commands: SilentCommands, library: GameLibrary) -> None:
        result = commands.backup_with_previous_tag()
        assert not result.success
        assert "create a backup manually first" in result.message
        assert not library.get("Elden").strategy.backup_directory.exists()

    def test_keeps_previous_tag(self, commands: SilentCommands, library: GameLibrary, status) -> None:
        game = library.get("Elden")
        game.backup(game.new_backup(), "boss")
        status.clear()

        assert commands.backup_with_previous_tag().success
        latest = game.load_backups()[0]
        assert latest.version == Decimal(2)
        assert latest.tag == "boss"
        assert "Silent backup at" in status.text

    def test_status_is_cleared_first(self, commands: SilentCommands, status: StatusBoard) -> None:
        status.error("stale")
        commands.backup_with_previous_tag()
        assert "stale" not in status.text

    def test_version_overflow_reports_error(
        self, commands: SilentCommands, library: GameLibrary, status: StatusBoard
    ) -> None:
        game = library.get("Elden")
        last = game.new_backup("Elden 2020-01-01 v999 end")
        game.strategy.create(game.codec.encode(last))
        status.clear()

        result = commands.backup_with_previous_tag()
        assert not result.success
        assert "does not fit the version format" in status.text
        assert "Silent backup at" not in status.text
        assert len(game.load_backups()) == 1
