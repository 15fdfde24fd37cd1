"""
mediacore.paths
~~~~~~~~~~~~~~~
Single source of truth for filesystem paths used across the app.
Import these instead of hard-coding strings anywhere else.
"""

from __future__ import annotations

import shutil
import sys
from pathlib import Path

# Project root = the directory that contains main.py
PROJECT_ROOT = Path(__file__).resolve().parent.parent

_EXE = ".exe" if sys.platform == "win32" else ""

BIN_DIR     = PROJECT_ROOT / "bin"
FFMPEG_BIN  = BIN_DIR / f"ffmpeg{_EXE}"
FFPROBE_BIN = BIN_DIR / f"ffprobe{_EXE}"


def _resolve(configured: str, bundled: Path, name: str) -> Path:
    """Configured path first, then the bundled binary, then whatever is on PATH."""
    if configured:
        return Path(configured).expanduser()
    if bundled.exists():
        return bundled
    found = shutil.which(name)
    return Path(found) if found else bundled


def resolve_ffmpeg(configured: str = "") -> Path:
    return _resolve(configured, FFMPEG_BIN, "ffmpeg")


def resolve_ffprobe(configured: str = "") -> Path:
    return _resolve(configured, FFPROBE_BIN, "ffprobe")


def validate_binaries(ffmpeg: Path | None = None, ffprobe: Path | None = None) -> list[str]:
    """
    Return a list of error strings for any missing/non-executable binaries.
    Empty list means all good.

    Call this at startup and show a dialog if errors is non-empty.
    """
    errors: list[str] = []
    for binary in (ffmpeg or resolve_ffmpeg(), ffprobe or resolve_ffprobe()):
        if not binary.exists():
            errors.append(f"Binary not found: {binary}")
        elif not binary.is_file():
            errors.append(f"Not a file: {binary}")
        elif sys.platform != "win32" and not binary.stat().st_mode & 0o111:
            errors.append(f"Not executable: {binary}")
    return errors
