"""Monitoring data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class MonitoringMode(StrEnum):
    """How closely a game's save location is watched."""

    OFF = "off"
    PASSIVE = "passive"  # observe only, backups stay manual
    ACTIVE = "active"  # observe and take automatic backups

    def next(self) -> MonitoringMode:
        """Next mode in the Off → Passive → Active → Off cycle."""
        cycle = (MonitoringMode.OFF, MonitoringMode.PASSIVE, MonitoringMode.ACTIVE)
        return cycle[(cycle.index(self) + 1) % len(cycle)]


class MonitoringStatus(StrEnum):
    """Freshness of the live save compared to the latest backup."""

    PLAYING = "playing"  # game progressed since last backup
    RESTORED = "restored"  # restored from a backup, a revert is available
    BACKED_UP = "backed_up"  # nothing changed since last backup


@dataclass
class MonitoringSnapshot:
    """One sample of the save location, recomputed on every poll."""

    save_time: datetime = field(default=datetime.min)
    last_backup_time: datetime = field(default=datetime.min)
    has_revert_artifact: bool = False
    auto_backup_counter: int = 0
    last_auto_backup_time: datetime = field(default=datetime.min)


def classify_status(snapshot: MonitoringSnapshot) -> MonitoringStatus | None:
    """
    Derive the monitoring status from a snapshot.

    Returns None when the live save is older than the latest backup, which is
    an anomaly rather than a status.
    """
    if snapshot.save_time > snapshot.last_backup_time:
        return MonitoringStatus.PLAYING
    if snapshot.save_time == snapshot.last_backup_time:
        if snapshot.has_revert_artifact:
            return MonitoringStatus.RESTORED
        return MonitoringStatus.BACKED_UP
    return None
