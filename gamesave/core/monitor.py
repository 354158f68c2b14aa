"""Monitoring engine — samples save timestamps and triggers automatic backups."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta
from enum import StrEnum
from functools import partial
from typing import TYPE_CHECKING, Callable

from loguru import logger

from gamesave.core.dispatcher import DirectDispatcher, Dispatcher
from gamesave.core.status import StatusBoard
from gamesave.errors import NotFoundError
from gamesave.models.monitoring import (
    MonitoringMode,
    MonitoringSnapshot,
    MonitoringStatus,
    classify_status,
)

if TYPE_CHECKING:
    from gamesave.core.strategy import BackupStrategy

DEFAULT_INTERVAL = 1.0
DEFAULT_QUIET_WINDOW = 10.0
AUTO_BACKUP_WRAP = 1000


class MonitoringEvent(StrEnum):
    """What changed, as delivered to observers."""

    MODE = "mode"
    STATUS = "status"
    SNAPSHOT = "snapshot"
    AUTO_BACKUP = "auto_backup"


Observer = Callable[["MonitoringEngine", MonitoringEvent], None]


class MonitoringEngine:
    """
    Periodic sampler over one game's save location.

    Modes cycle Off → Passive → Active → Off. Leaving Off starts the sampler
    thread and returning to Off stops it. Each tick:

      1. refreshes the snapshot and status through the strategy
      2. stops if the save time did not change
      3. notifies observers of the new snapshot
      4. stops if the save time moved less than the quiet window past the
         last committed one (a burst of writes from one game save)
      5. in Active mode, bumps the counter and takes an automatic backup
      6. commits the snapshot as the new baseline

    Observers and the automatic backup run through the dispatcher, so they
    execute on the interaction thread rather than the sampler thread.
    """

    def __init__(
        self,
        strategy: BackupStrategy,
        mode: MonitoringMode = MonitoringMode.OFF,
        dispatcher: Dispatcher | None = None,
        status: StatusBoard | None = None,
        interval: float = DEFAULT_INTERVAL,
        quiet_window: float = DEFAULT_QUIET_WINDOW,
    ) -> None:
        self.strategy = strategy
        self.status = status or strategy.status
        self.snapshot = MonitoringSnapshot()
        self.interval = interval
        self.quiet_window = timedelta(seconds=quiet_window)
        self._dispatcher: Dispatcher = dispatcher or DirectDispatcher()
        self._mode = MonitoringMode(mode)
        self._monitoring_status: MonitoringStatus | None = None
        self._previous: MonitoringSnapshot | None = None
        self._anomaly_reported = False
        self._counter = 0
        self._last_auto_backup_time = datetime.min
        self._observers: list[Observer] = []
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._stop_event: threading.Event | None = None

    # ── Mode ──

    @property
    def mode(self) -> MonitoringMode:
        return self._mode

    @mode.setter
    def mode(self, value: MonitoringMode) -> None:
        value = MonitoringMode(value)
        if value == MonitoringMode.OFF:
            self._halt_sampler()
        elif not self.is_running:
            self._start_sampler()
        self._mode = value
        self._notify(MonitoringEvent.MODE)

    def cycle_mode(self) -> MonitoringMode:
        self.mode = self._mode.next()
        return self._mode

    @property
    def is_monitoring(self) -> bool:
        return self._mode != MonitoringMode.OFF

    @property
    def is_automatic(self) -> bool:
        return self._mode == MonitoringMode.ACTIVE

    @property
    def monitoring_status(self) -> MonitoringStatus | None:
        return self._monitoring_status

    @property
    def auto_backup_counter(self) -> int:
        return self._counter

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ── Lifecycle ──

    def attach(self, observer: Observer) -> None:
        with self._lock:
            if observer not in self._observers:
                self._observers.append(observer)

    def detach(self, observer: Observer) -> None:
        with self._lock:
            if observer in self._observers:
                self._observers.remove(observer)

    def start(self, observer: Observer | None = None) -> None:
        """Attach an observer and start sampling if not already running."""
        if observer is not None:
            self.attach(observer)
        if not self.is_running:
            self._start_sampler()

    def stop(self, observer: Observer | None = None) -> None:
        """
        Stop sampling and detach observers.

        With an observer only that one is detached; without, all are.
        Stopping a stopped engine is a no-op.
        """
        self._halt_sampler()
        with self._lock:
            if observer is None:
                self._observers.clear()
            elif observer in self._observers:
                self._observers.remove(observer)

    def reset_baseline(self) -> MonitoringSnapshot:
        """Take a fresh snapshot and make it the baseline for change detection."""
        snapshot = self.refresh()
        self._previous = snapshot
        return snapshot

    def _start_sampler(self) -> None:
        try:
            self.reset_baseline()
        except Exception as e:
            logger.exception(f"Initial monitoring snapshot failed for {self.strategy.game.name}")
            self._report_failure(e)
        try:
            target = self.strategy.monitor_path()
            logger.info(f"Monitoring {self.strategy.game.name} at {target.path} ({target.pattern})")
        except NotFoundError as e:
            logger.warning(f"Monitoring {self.strategy.game.name} without a save location: {e}")
        stop_event = threading.Event()
        thread = threading.Thread(
            target=self._run,
            args=(stop_event,),
            name=f"monitor-{self.strategy.game.name}",
            daemon=True,
        )
        self._stop_event = stop_event
        self._thread = thread
        thread.start()

    def _halt_sampler(self) -> None:
        stop_event, thread = self._stop_event, self._thread
        self._stop_event = None
        self._thread = None
        if stop_event is None or thread is None:
            return
        stop_event.set()
        if thread is not threading.current_thread():
            thread.join(timeout=self.interval + 1.0)
        logger.info(f"Stopped monitoring {self.strategy.game.name}")

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval):
            try:
                self.tick()
            except Exception as e:
                logger.exception(f"Monitoring tick failed for {self.strategy.game.name}")
                self._report_failure(e)

    # ── Sampling ──

    def refresh(self) -> MonitoringSnapshot:
        """Re-read the snapshot and re-derive the status."""
        snapshot = self.strategy.status_snapshot()
        snapshot.auto_backup_counter = self._counter
        snapshot.last_auto_backup_time = self._last_auto_backup_time
        self.snapshot = snapshot

        status = classify_status(snapshot)
        if status is None:
            if not self._anomaly_reported:
                logger.warning(f"{self.strategy.game.name}: game save time is before latest backup")
                self._anomaly_reported = True
            return snapshot
        self._anomaly_reported = False
        if status != self._monitoring_status:
            self._monitoring_status = status
            self._notify(MonitoringEvent.STATUS)
        return snapshot

    def tick(self) -> bool:
        """One sampling step. Returns True when an automatic backup was scheduled."""
        current = self.refresh()
        previous = self._previous

        if previous is not None and current.save_time == previous.save_time:
            return False

        self._notify(MonitoringEvent.SNAPSHOT)

        if previous is not None and current.save_time - previous.save_time < self.quiet_window:
            return False

        scheduled = False
        if self.is_automatic:
            scheduled = self._dispatcher.submit(self._automatic_backup)

        self._previous = current
        return scheduled

    def _automatic_backup(self) -> None:
        self._counter = (self._counter + 1) % AUTO_BACKUP_WRAP
        label = f"{self._counter:03d}"
        result = self.strategy.automatic_backup(label)
        if result.success:
            self._last_auto_backup_time = datetime.now()
            self.snapshot.auto_backup_counter = self._counter
            self.snapshot.last_auto_backup_time = self._last_auto_backup_time
            logger.info(f"Automatic backup {label} taken for {self.strategy.game.name}")
        self._notify(MonitoringEvent.AUTO_BACKUP)

    # ── Notification ──

    def _notify(self, event: MonitoringEvent) -> None:
        with self._lock:
            observers = list(self._observers)
        for observer in observers:
            self._dispatcher.submit(partial(observer, self, event))

    def _report_failure(self, error: Exception) -> None:
        message = f"Monitoring {self.strategy.game.name} failed: {error}"
        self._dispatcher.submit(partial(self.status.error, message))
