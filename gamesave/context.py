"""Application context — service container for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gamesave.config import Config
    from gamesave.core.commands import SilentCommands
    from gamesave.core.dispatcher import Dispatcher
    from gamesave.core.status import StatusBoard
    from gamesave.data.game_library import GameLibrary


@dataclass
class AppContext:
    """
    Central service container.

    Front ends receive this at construction time instead of reaching for
    module-level singletons.
    """

    config: Config
    status: StatusBoard
    dispatcher: Dispatcher
    library: GameLibrary
    commands: SilentCommands
