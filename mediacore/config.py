"""
mediacore.config
~~~~~~~~~~~~~~~~
Persists application Settings to a JSON file in the platform's
standard config directory.

Config location
---------------
  Windows  : %APPDATA%\\Clipwright\\settings.json
  macOS    : ~/Library/Application Support/Clipwright/settings.json
  Linux    : ~/.config/Clipwright/settings.json

Job history is never written here — only user preferences.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import asdict, dataclass, fields
from pathlib import Path

from mediacore.models import AUDIO_FORMATS, Quality

logger = logging.getLogger(__name__)

APP_NAME = "Clipwright"


# ── Config directory ──────────────────────────────────────────────────────────

def config_dir() -> Path:
    if sys.platform == "win32":
        base = Path.home() / "AppData" / "Roaming"
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path.home() / ".config"

    d = base / APP_NAME
    d.mkdir(parents=True, exist_ok=True)
    return d


def settings_file() -> Path:
    return config_dir() / "settings.json"


# ── Settings ──────────────────────────────────────────────────────────────────

@dataclass
class Settings:
    ffmpeg_path: str = ""              # empty → bundled binary, then PATH
    ffprobe_path: str = ""
    default_quality: str = Quality.MEDIUM.value
    thumbnail_offset: float = 10.0
    default_audio_format: str = "mp3"
    output_dir: str = ""               # empty → next to the input file
    log_level: str = "INFO"
    notifications: bool = True

    def __post_init__(self):
        if self.default_quality not in {q.value for q in Quality}:
            self.default_quality = Quality.MEDIUM.value
        if self.default_audio_format not in AUDIO_FORMATS:
            self.default_audio_format = "mp3"
        try:
            self.thumbnail_offset = max(0.0, float(self.thumbnail_offset))
        except (TypeError, ValueError):
            self.thumbnail_offset = 10.0
        self.log_level = str(self.log_level).upper()


# ── Public API ────────────────────────────────────────────────────────────────

def load_settings(path: Path | None = None) -> Settings:
    """
    Read the settings file and return a Settings instance.
    Missing keys take their defaults, unknown keys are ignored, and a
    missing or malformed file yields the defaults.
    """
    path = path or settings_file()
    if not path.exists():
        return Settings()
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("[CONFIG] Could not read %s: %s", path, exc)
        return Settings()
    if not isinstance(payload, dict):
        return Settings()

    known = {f.name for f in fields(Settings)}
    return Settings(**{k: v for k, v in payload.items() if k in known})


def save_settings(settings: Settings, path: Path | None = None) -> None:
    """
    Serialise *settings*, overwriting any previous data.
    I/O errors are logged so a config issue never crashes the app.
    """
    path = path or settings_file()
    try:
        path.write_text(json.dumps(asdict(settings), indent=2), encoding="utf-8")
    except OSError as exc:
        logger.error("[CONFIG] Could not write %s: %s", path, exc)
