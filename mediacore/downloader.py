"""
mediacore.downloader
~~~~~~~~~~~~~~~~~~~~
QThread that downloads static ffmpeg and ffprobe builds into BIN_DIR
when neither the settings nor PATH provide them.

Signals
-------
progress(int)        0–100 overall percentage across both files
status(str)          human-readable status line
done(bool)           True = success, False = failure
"""

from __future__ import annotations

import logging
import stat
import sys
import urllib.request
from pathlib import Path

from PySide6.QtCore import QThread, Signal

from mediacore.paths import BIN_DIR, FFMPEG_BIN, FFPROBE_BIN

logger = logging.getLogger(__name__)

BASE_URL = "https://github.com/eugeneware/ffmpeg-static/releases/download/b6.1.1"
CHUNK_SIZE = 1024 * 64


def _platform_suffix() -> str:
    if sys.platform == "win32":
        return "win32-x64"
    if sys.platform == "darwin":
        return "darwin-x64"
    return "linux-x64"


def missing_binaries() -> list[tuple[str, Path]]:
    """Return [(download_url, local_path), ...] for each bundled binary that is missing."""
    suffix = _platform_suffix()
    pairs = [
        (f"{BASE_URL}/ffmpeg-{suffix}",  FFMPEG_BIN),
        (f"{BASE_URL}/ffprobe-{suffix}", FFPROBE_BIN),
    ]
    return [(url, path) for url, path in pairs if not path.exists()]


class BinaryDownloader(QThread):

    progress = Signal(int)
    status   = Signal(str)
    done     = Signal(bool)

    def run(self):
        BIN_DIR.mkdir(parents=True, exist_ok=True)

        pairs = missing_binaries()
        if not pairs:
            self.progress.emit(100)
            self.done.emit(True)
            return

        total = len(pairs)
        for idx, (url, dest) in enumerate(pairs):
            self.status.emit(f"Downloading {dest.name}…")
            logger.info("[DOWNLOADER] %s → %s", url, dest)
            try:
                self._fetch(url, dest, base_pct=idx / total * 100, share=1 / total)
            except Exception as exc:
                logger.error("[DOWNLOADER] Failed: %s", exc)
                if dest.exists():
                    dest.unlink()
                self.status.emit(f"Failed to download {dest.name}: {exc}")
                self.done.emit(False)
                return

        self.progress.emit(100)
        self.status.emit("Binaries ready.")
        self.done.emit(True)

    def _fetch(self, url: str, dest: Path, base_pct: float, share: float) -> None:
        with urllib.request.urlopen(url, timeout=60) as req:
            content_length = req.headers.get("Content-Length")
            file_size = int(content_length) if content_length else 0

            downloaded = 0
            with open(dest, "wb") as f:
                while chunk := req.read(CHUNK_SIZE):
                    f.write(chunk)
                    downloaded += len(chunk)
                    if file_size:
                        self.progress.emit(int(base_pct + downloaded / file_size * share * 100))

        dest.chmod(dest.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        logger.info("[DOWNLOADER] %s ready", dest.name)
