"""Dispatchers — hand work from the monitoring thread to the interaction thread."""

from __future__ import annotations

import queue
from typing import Callable, Protocol

from loguru import logger
from PySide6.QtCore import QObject, Qt, Signal

Task = Callable[[], None]


class Dispatcher(Protocol):
    """Accepts a task from any thread; never blocks the caller."""

    def submit(self, task: Task) -> bool: ...


def _run_task(task: Task) -> None:
    try:
        task()
    except Exception:
        logger.exception("Dispatched task failed")


class DirectDispatcher:
    """Runs tasks immediately on the submitting thread (headless commands)."""

    def submit(self, task: Task) -> bool:
        _run_task(task)
        return True


class QueueDispatcher:
    """
    Bounded hand-off queue.

    The sampler thread submits; the interaction thread drains with
    process_pending(). A full queue drops the task instead of blocking.
    """

    def __init__(self, maxsize: int = 256) -> None:
        self._queue: queue.Queue[Task] = queue.Queue(maxsize=maxsize)

    def submit(self, task: Task) -> bool:
        try:
            self._queue.put_nowait(task)
        except queue.Full:
            logger.warning("Dispatch queue full, dropping monitoring notification")
            return False
        return True

    def process_pending(self, limit: int | None = None) -> int:
        """Run queued tasks on the calling thread. Returns how many ran."""
        count = 0
        while limit is None or count < limit:
            try:
                task = self._queue.get_nowait()
            except queue.Empty:
                break
            _run_task(task)
            count += 1
        return count

    @property
    def pending(self) -> int:
        return self._queue.qsize()


class QtDispatcher(QObject):
    """Delivers tasks to the thread owning this object through a queued Qt signal."""

    _posted = Signal(object)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._posted.connect(self._on_posted, Qt.ConnectionType.QueuedConnection)

    def submit(self, task: Task) -> bool:
        self._posted.emit(task)
        return True

    def _on_posted(self, task: Task) -> None:
        _run_task(task)
