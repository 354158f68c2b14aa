"""Backup identity model — the metadata carried by one backup name."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass
class BackupIdentity:
    """
    Structured form of a backup name.

    Built fresh for every backup/restore/rename and never persisted apart
    from the name it renders to.
    """

    prefix: str = ""
    game_directory: str = ""  # directory strategy only
    date: str = ""  # rendered date, opaque to the codec
    version: Decimal = field(default_factory=Decimal)
    tag: str = ""
    reuse: int = 0  # 0..99, 0 is not rendered
    extension: str = ""  # file strategy only
