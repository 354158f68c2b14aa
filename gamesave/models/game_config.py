"""Game configuration models — naming and location fields, validated on assignment."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any, Callable

from gamesave.errors import InvalidFormatConfiguration, UnsupportedStrategyError
from gamesave.models.monitoring import MonitoringMode

GRAMMAR_TOKENS = "PGsDVTRE "
GRAMMAR_CAPITALS = "PGDVTRE"

_FILENAME_CHARS = re.compile(r"^[\w\-. ]*$")
_VERSION_FORMAT = re.compile(r"^v?\d{1,3}(\.\d{1,2})?$")
_PARTS = re.compile(r"^[\-+^&]*$")

# Dates spread over every month and weekday, used to check a date pattern
# always renders to the same length.
_DATE_SAMPLES = [
    datetime(2024, month, day, hour)
    for month in range(1, 13)
    for day, hour in ((1, 0), (9, 9), (10, 13), (28, 23))
]


class StrategyType(StrEnum):
    """Supported backup strategies."""

    PEER_DIRECTORY = "PeerDirectory"
    SUBORDINATE_USER_FILE = "SubordinateUserFile"


def validate_prefix(value: str) -> None:
    """Up to 20 filename characters, not ending in '.' or ' ', without '. '."""
    if not value:
        return
    if (
        len(value) > 20
        or not _FILENAME_CHARS.match(value)
        or value[-1] in ". "
        or ". " in value
    ):
        raise InvalidFormatConfiguration(
            f"Invalid prefix '{value}'. It can be up to 20 characters that are valid "
            "in a filename, excluding the directory separator."
        )


def validate_extension(value: str) -> None:
    if len(value) > 3 or not _FILENAME_CHARS.match(value):
        raise InvalidFormatConfiguration(
            f"Invalid extension '{value}'. It can be up to 3 characters that are valid in a filename."
        )


def validate_separator(value: str) -> None:
    if len(value) > 3 or not _FILENAME_CHARS.match(value):
        raise InvalidFormatConfiguration(
            f"Invalid separator '{value}'. It can be up to 3 characters that are valid in a filename."
        )


def validate_version_format(value: str) -> None:
    if not _VERSION_FORMAT.match(value):
        raise InvalidFormatConfiguration(
            f"Invalid version format '{value}'. It must look like 'v999.99' or '999.99', "
            "where the decimal part is optional."
        )


def validate_parts(value: str) -> None:
    if not _PARTS.match(value):
        raise InvalidFormatConfiguration(
            f"Invalid parts '{value}'. It can contain any combination of -+^& in any order."
        )


def validate_date_format(value: str) -> None:
    """The pattern must render, contain no path separator and have a fixed width."""
    try:
        rendered = {sample.strftime(value) for sample in _DATE_SAMPLES}
    except ValueError as e:
        raise InvalidFormatConfiguration(f"Invalid date format '{value}': {e}", e) from e
    if not value or any("/" in r or "\\" in r for r in rendered):
        raise InvalidFormatConfiguration(
            f"Invalid date format '{value}'. It must render without path separators."
        )
    if len({len(r) for r in rendered}) != 1:
        raise InvalidFormatConfiguration(
            f"Invalid date format '{value}'. Every date must render to the same length."
        )


def validate_name_format(value: str) -> None:
    """
    Check a format grammar.

    Only the tokens ``PGsDVTRE`` and space are allowed, each capital at most
    once, at most one ``s`` between two capitals, and the grammar never ends
    in ``s``.
    """
    message = (
        f"Invalid name format '{value}'. It can only contain the characters PGsDVTRE and space, "
        "each capital letter can only occur once, and 's' can be present only once "
        "between any two capitals."
    )
    if not value or value.endswith("s") or any(c not in GRAMMAR_TOKENS for c in value):
        raise InvalidFormatConfiguration(message)
    capitals = [c for c in value if c in GRAMMAR_CAPITALS]
    if len(capitals) != len(set(capitals)):
        raise InvalidFormatConfiguration(message)
    segments = re.split(f"[{GRAMMAR_CAPITALS}]", value)
    if any(segment.count("s") > 1 for segment in segments):
        raise InvalidFormatConfiguration(message)


def validate_max_backups(value: int) -> None:
    if not isinstance(value, int) or value < 1:
        raise InvalidFormatConfiguration(f"Invalid max backups '{value}'. It must be at least 1.")


def validate_strategy_type(value: str) -> None:
    try:
        StrategyType(value)
    except ValueError as e:
        raise UnsupportedStrategyError(f"Unsupported backup strategy: {value}", e) from e


class _Validated:
    """Runs the field validator before any value is accepted."""

    _validators: dict[str, Callable[[Any], None]] = {}

    def __setattr__(self, name: str, value: Any) -> None:
        validator = self._validators.get(name)
        if validator is not None:
            validator(value)
        super().__setattr__(name, value)


@dataclass
class SaveFileSpec(_Validated):
    """The file the game itself writes, as ``<prefix>.<extension>``."""

    _validators = {"prefix": validate_prefix, "extension": validate_extension}

    prefix: str
    extension: str = ""

    @property
    def name(self) -> str:
        return f"{self.prefix}.{self.extension}" if self.extension else self.prefix


@dataclass
class GameConfig(_Validated):
    """
    Configuration of one game.

    parent_directory: where the game stores its save
    user_directory:   where the user keeps the backups
    game_directory:   sub-folder of parent_directory holding the save
    """

    _validators = {
        "save_prefix": validate_prefix,
        "separator": validate_separator,
        "name_format": validate_name_format,
        "date_format": validate_date_format,
        "version_format": validate_version_format,
        "parts": validate_parts,
        "max_backups": validate_max_backups,
        "strategy_type": validate_strategy_type,
    }

    name: str
    parent_directory: str
    user_directory: str
    game_directory: str = ""
    strategy_type: str = StrategyType.PEER_DIRECTORY
    save_file: SaveFileSpec | None = None
    save_prefix: str = ""
    name_format: str = "PsDsVsT R"
    date_format: str = "%Y-%m-%d"
    version_format: str = "v001"
    initial_version: Decimal = field(default_factory=Decimal)
    separator: str = " "
    parts: str = "-+^&"
    max_backups: int = 20
    revert_suffix: str = "revert"
    monitoring_mode: MonitoringMode = MonitoringMode.OFF

    @property
    def extension(self) -> str:
        return self.save_file.extension if self.save_file else ""
