"""Exceptions raised by the name codec, the backup strategies and game configuration."""

from __future__ import annotations


class GameSaveError(Exception):
    """Base exception for all game-save errors."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class MalformedBackupName(GameSaveError):
    """Raised when a backup name cannot be reconciled with the format grammar."""


class EmptyTagError(GameSaveError):
    """Raised when a backup tag is set to an empty value."""


class DuplicateNameError(GameSaveError):
    """Raised when a rename target is already occupied by a different backup."""


class NotFoundError(GameSaveError):
    """Raised when a backup, backup directory or live save is missing."""


class NoRevertAvailableError(GameSaveError):
    """Raised when a revert is requested but no revert artifact exists."""


class UnsupportedStrategyError(GameSaveError):
    """Raised for an unknown backup strategy identifier."""


class InvalidFormatConfiguration(GameSaveError):
    """Raised when a game's naming or format field fails validation."""
