"""Status board — the single surface every operation reports success or failure to."""

from __future__ import annotations

import threading
from enum import IntEnum

from loguru import logger


class Severity(IntEnum):
    """Message severity; higher values outrank lower ones."""

    NONE = 0
    INFO = 1  # sub-task completed
    USER = 2  # task completed, shown to the user
    ERROR = 3


class MessageLevel(IntEnum):
    """How much the board keeps."""

    ERRORS = 0
    USER = 1
    INFO = 2


class StatusBoard:
    """
    Cumulative status messages with a severity.

    Errors are always kept. User messages are kept unless an error is
    already showing; info messages only at the INFO message level.
    """

    def __init__(self, message_level: int = MessageLevel.USER) -> None:
        self.message_level = MessageLevel(message_level)
        self._messages: list[str] = []
        self._severity = Severity.NONE
        self._lock = threading.Lock()

    @property
    def text(self) -> str:
        with self._lock:
            return "  ".join(self._messages)

    @property
    def messages(self) -> list[str]:
        with self._lock:
            return list(self._messages)

    @property
    def severity(self) -> Severity:
        return self._severity

    def error(self, message: str) -> None:
        logger.error(message)
        self._append(Severity.ERROR, message)

    def user(self, message: str) -> None:
        logger.info(message)
        if self.message_level >= MessageLevel.USER and self._severity != Severity.ERROR:
            self._append(Severity.USER, message)

    def info(self, message: str) -> None:
        logger.debug(message)
        if self.message_level >= MessageLevel.INFO:
            self._append(Severity.INFO, message)

    def post(self, severity: Severity, message: str) -> None:
        if severity == Severity.ERROR:
            self.error(message)
        elif severity == Severity.USER:
            self.user(message)
        else:
            self.info(message)

    def clear(self) -> None:
        with self._lock:
            self._messages.clear()
            self._severity = Severity.NONE

    def _append(self, severity: Severity, message: str) -> None:
        with self._lock:
            self._messages.append(message)
            self._severity = max(self._severity, severity)
