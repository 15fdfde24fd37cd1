"""
mediacore.probe
~~~~~~~~~~~~~~~
Thin wrapper around the ffprobe CLI.
Returns MediaInfo dataclasses — no Qt, no side effects.

When ffprobe itself fails (non-zero exit, unreadable output, missing
binary) the caller still gets a MediaInfo: a placeholder built around
the file's real byte size. Only a timeout and a file without a video
track are reported as errors.
"""

from __future__ import annotations

import json
import logging
import math
import subprocess
from pathlib import Path

from mediacore.command_builder import build_probe_command
from mediacore.errors import NoVideoStream, NotFound, ProbeTimeout
from mediacore.models import MediaInfo
from mediacore.paths import FFPROBE_BIN

logger = logging.getLogger(__name__)

PROBE_TIMEOUT_SECONDS = 30

# Placeholder values used when ffprobe cannot describe the file
FALLBACK_DURATION   = 30.5
FALLBACK_BITRATE    = "1000000"
FALLBACK_CODEC      = "h264"
FALLBACK_RESOLUTION = "1920x1080"
FALLBACK_FPS        = 30.0

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


# ── Public API ────────────────────────────────────────────────────────────────

def inspect(
    file: Path | str,
    ffprobe: Path | str = FFPROBE_BIN,
    timeout: float = PROBE_TIMEOUT_SECONDS,
) -> MediaInfo:
    """
    Run ffprobe on *file* and return a MediaInfo.

    Raises:
        NotFound       – if the input file does not exist
        ProbeTimeout   – if ffprobe does not finish within *timeout*
        NoVideoStream  – if ffprobe succeeds but reports no video track
    """
    file = Path(file)
    if not str(file).strip() or str(file) == ".":
        raise NotFound(file)
    if not file.is_file():
        raise NotFound(file)

    logger.info("[PROBE] Inspecting %s", file)
    try:
        data = _run_ffprobe(file, ffprobe, timeout)
    except subprocess.TimeoutExpired:
        logger.warning("[PROBE] Timed out after %ss on %s", timeout, file)
        raise ProbeTimeout(file, timeout) from None
    except Exception as exc:
        logger.warning("[PROBE] ffprobe failed on %s (%s), using estimate", file.name, exc)
        return _fallback(file)

    try:
        return _parse(file, data)
    except NoVideoStream:
        raise
    except Exception as exc:
        logger.warning("[PROBE] Could not read ffprobe output for %s (%s), using estimate",
                       file.name, exc)
        return _fallback(file)


def get_duration(file: Path | str, ffprobe: Path | str = FFPROBE_BIN) -> float:
    """
    Duration in seconds straight from ffprobe's format section.
    Returns 0.0 if the duration cannot be determined; unlike inspect()
    this never hands back the placeholder estimate.
    """
    try:
        data = _run_ffprobe(Path(file), ffprobe, PROBE_TIMEOUT_SECONDS)
    except Exception as exc:
        logger.debug("[PROBE] No duration for %s: %s", file, exc)
        return 0.0
    return parse_duration(data)


def parse_duration(data: dict) -> float:
    """format.duration from ffprobe JSON; 0.0 when missing, malformed or not positive."""
    try:
        duration = float(data.get("format", {}).get("duration", 0.0))
    except (TypeError, ValueError, AttributeError):
        return 0.0
    return duration if math.isfinite(duration) and duration > 0 else 0.0


def format_bytes(size: int | float) -> str:
    """
    0 → "0 Bytes", 1536 → "1.5 KB", 1073741824 → "1 GB".
    Two decimals at most, trailing zeros dropped.
    """
    if not size or size <= 0:
        return "0 Bytes"
    value, i = float(size), 0
    while value >= 1024 and i < len(_SIZE_UNITS) - 1:
        value /= 1024
        i += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[i]}"


def parse_fps(frac: str) -> float:
    """Convert a rational string like '24000/1001' (or '25') to a float."""
    try:
        if "/" not in frac:
            return float(frac)
        num, den = frac.split("/")
        return float(num) / float(den) if float(den) != 0 else 0.0
    except (ValueError, ZeroDivisionError, AttributeError):
        return 0.0


# ── Internal helpers ──────────────────────────────────────────────────────────

def _run_ffprobe(file: Path, ffprobe: Path | str, timeout: float) -> dict:
    """Execute ffprobe and return parsed JSON output."""
    result = subprocess.run(
        build_probe_command(file, ffprobe),
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        timeout=timeout,
    )

    if result.returncode != 0:
        raise RuntimeError(
            f"ffprobe failed on {file.name}:\n{result.stderr.strip()}"
        )

    return json.loads(result.stdout)


def _parse(file: Path, data: dict) -> MediaInfo:
    """Extract the fields we care about from raw ffprobe JSON."""
    fmt = data.get("format", {})
    streams = data.get("streams", [])

    video_stream = next((s for s in streams if s.get("codec_type") == "video"), None)
    if video_stream is None:
        raise NoVideoStream(file)

    size = int(fmt.get("size") or 0)

    return MediaInfo(
        duration=float(fmt.get("duration") or 0.0),
        size=format_bytes(size),
        bitrate=str(fmt.get("bit_rate") or "0"),
        codec=video_stream.get("codec_name") or "unknown",
        resolution=f"{video_stream.get('width')}x{video_stream.get('height')}",
        fps=parse_fps(video_stream.get("r_frame_rate") or "0/1"),
    )


def _fallback(file: Path) -> MediaInfo:
    return MediaInfo(
        duration=FALLBACK_DURATION,
        size=format_bytes(file.stat().st_size),
        bitrate=FALLBACK_BITRATE,
        codec=FALLBACK_CODEC,
        resolution=FALLBACK_RESOLUTION,
        fps=FALLBACK_FPS,
    )
