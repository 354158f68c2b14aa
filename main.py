"""Application entry point — wires services and runs a command or the monitor."""

from __future__ import annotations

import argparse
import signal
import sys
from pathlib import Path

from loguru import logger

from gamesave.config import Config, get_config
from gamesave.context import AppContext
from gamesave.core.commands import SilentCommands
from gamesave.core.dispatcher import DirectDispatcher, Dispatcher, QtDispatcher
from gamesave.core.status import StatusBoard
from gamesave.data.game_library import GameLibrary
from gamesave.logger import setup_logger
from gamesave.models.monitoring import MonitoringMode


def create_context(config: Config | None = None, dispatcher: Dispatcher | None = None) -> AppContext:
    """Wire all services and return an AppContext."""
    config = config or get_config()

    # Logger
    setup_logger(config.log_dir, level=config.log_level)

    status = StatusBoard(config.message_level)
    dispatcher = dispatcher or DirectDispatcher()

    # Data
    library = GameLibrary(
        config.games_path,
        status=status,
        dispatcher=dispatcher,
        monitor_interval=config.monitor_interval,
        quiet_window=config.quiet_window,
    )
    library.load()

    commands = SilentCommands(library, config, status)

    return AppContext(
        config=config,
        status=status,
        dispatcher=dispatcher,
        library=library,
        commands=commands,
    )


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="game-save-manager",
        description="Back up, restore and monitor game save files.",
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--restore", action="store_true", help="restore the newest backup of the last-used game"
    )
    group.add_argument(
        "--backup", action="store_true", help="back up the last-used game, keeping its tag"
    )
    group.add_argument(
        "--monitor",
        nargs="?",
        const="",
        metavar="GAME",
        help="watch a game's save and take automatic backups (default: last-used game)",
    )
    parser.add_argument("--data-dir", type=Path, help="settings and game library directory")
    return parser.parse_args(argv)


def _run_monitor(config: Config, name: str) -> int:
    from PySide6.QtCore import QCoreApplication, QTimer

    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    app.setApplicationName("Game Save Manager")
    app.setOrganizationName("GameSaveManager")

    ctx = create_context(config, QtDispatcher())
    name = name or config.last_selected_game
    game = ctx.library.get(name) if name else None
    if game is None:
        logger.error(f"Unknown game: '{name}'")
        return 1
    config.last_selected_game = game.name

    def on_event(engine, event) -> None:
        logger.info(f"[{game.name}] {event}: status={engine.monitoring_status}, mode={engine.mode}")
        if ctx.status.text:
            logger.info(f"[{game.name}] {ctx.status.text}")
            ctx.status.clear()

    if game.monitor.mode == MonitoringMode.OFF:
        game.monitor.mode = MonitoringMode.PASSIVE
    game.gain_focus(on_event)

    # Ctrl+C ends the event loop; the timer gives Python a chance to run the handler
    signal.signal(signal.SIGINT, lambda *_: app.quit())
    wakeup = QTimer()
    wakeup.timeout.connect(lambda: None)
    wakeup.start(500)
    try:
        return app.exec()
    finally:
        game.lose_focus()
        ctx.library.save()


def main(argv: list[str] | None = None) -> int:
    """Application entry point."""
    args = _parse_args(argv)
    config = Config(args.data_dir) if args.data_dir else get_config()

    if args.monitor is not None:
        return _run_monitor(config, args.monitor)

    ctx = create_context(config)
    if args.restore:
        result = ctx.commands.restore_most_recent()
    elif args.backup:
        result = ctx.commands.backup_with_previous_tag()
    else:
        for game in ctx.library.all_games():
            print(f"{game.name}\t{game.config.strategy_type}\t{game.monitor.mode}")
        return 0

    if ctx.status.text:
        print(ctx.status.text)
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
