"""Portable path resolver — store game and backup locations with placeholders."""

from __future__ import annotations

import os
import platform
from pathlib import Path


def _documents_path() -> Path:
    """The real Documents path (handles relocated folders on Windows)."""
    if platform.system() == "Windows":
        try:
            import ctypes.wintypes

            buf = ctypes.create_unicode_buffer(ctypes.wintypes.MAX_PATH)
            # CSIDL_PERSONAL = 0x0005
            ctypes.windll.shell32.SHGetFolderPathW(None, 0x0005, None, 0, buf)  # type: ignore[union-attr]
            return Path(buf.value)
        except (AttributeError, OSError):
            pass
    return Path.home() / "Documents"


def _placeholders() -> dict[str, Path]:
    """Placeholder-to-path mapping for the current system."""
    home = Path.home()
    return {
        "${SAVEDGAMES}": home / "Saved Games",
        "${DOCUMENTS}": _documents_path(),
        "${APPDATA}": Path(os.environ.get("APPDATA", str(home / "AppData" / "Roaming"))),
        "${LOCALAPPDATA}": Path(os.environ.get("LOCALAPPDATA", str(home / "AppData" / "Local"))),
        "${HOME}": home,
    }


def to_portable_path(path: str | Path) -> str:
    """Replace the most specific known folder prefix with its placeholder."""
    if not str(path):
        return ""
    path_str = str(Path(path).expanduser().resolve())
    for placeholder, resolved in sorted(
        _placeholders().items(), key=lambda item: len(str(item[1])), reverse=True
    ):
        resolved_str = str(resolved)
        if path_str == resolved_str or path_str.startswith(resolved_str + os.sep):
            return placeholder + path_str[len(resolved_str) :]
    return path_str


def from_portable_path(portable: str) -> str:
    """Expand a placeholder path back to an absolute path string."""
    for placeholder, resolved in _placeholders().items():
        if portable.startswith(placeholder):
            rest = portable[len(placeholder) :].lstrip("/\\")
            return str(resolved / rest) if rest else str(resolved)
    return portable
