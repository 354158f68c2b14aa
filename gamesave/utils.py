"""Shared filesystem helpers."""

from __future__ import annotations

import shutil
from datetime import datetime
from pathlib import Path

from gamesave.errors import NotFoundError


def modified_time(path: Path) -> datetime:
    """Last write time of a path, ``datetime.min`` when it does not exist."""
    try:
        return datetime.fromtimestamp(path.stat().st_mtime)
    except FileNotFoundError:
        return datetime.min


def copy_directory(source: Path, destination: Path) -> None:
    """Recursively clone a directory, replacing any existing destination."""
    if not source.is_dir():
        raise NotFoundError(f"Source directory does not exist or could not be found: {source}")
    if destination.exists():
        shutil.rmtree(destination)
    shutil.copytree(source, destination)


def copy_file(source: Path, destination: Path) -> None:
    """Copy a single file (with timestamps), overwriting the destination."""
    if not source.is_file():
        raise NotFoundError(f"Source file does not exist or could not be found: {source}")
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(source, destination)


def same_entry(a: Path, b: Path) -> bool:
    """True when both paths exist and point at the same filesystem entry."""
    try:
        return a.samefile(b)
    except OSError:
        return False
