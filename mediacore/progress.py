"""
mediacore.progress
~~~~~~~~~~~~~~~~~~
Turns ffmpeg's ``-progress pipe:1`` stream into ProgressSnapshot values.

ffmpeg writes blocks of ``key=value`` lines, each block closed by a
``progress=continue`` (or ``progress=end``) line:

    frame=120
    fps=59.94
    total_size=1048576
    out_time=00:00:04.004000
    speed=1.98x
    progress=continue

Nothing here raises on bad input: a line that cannot be understood is
skipped and a field that cannot be parsed falls back to its default.
"""

from __future__ import annotations

import logging
import math
import re

from mediacore.models import ProgressSnapshot

logger = logging.getLogger(__name__)

_PROGRESS_KV = re.compile(r"^([a-zA-Z0-9_]+)=(.*)$")
_TIMEMARK = re.compile(r"^\s*(\d+):(\d+):(\d+)(?:\.\d*)?\s*$")

UNKNOWN_ESTIMATE = "Unknown"


def parse_timemark(mark: str | None) -> int:
    """
    "HH:MM:SS[.ms]" → whole seconds. "00:01:30" → 90, "01:00:00" → 3600.
    Fractions are truncated; anything malformed maps to 0.
    """
    if not mark:
        return 0
    m = _TIMEMARK.match(mark)
    if not m:
        return 0
    h, mi, s = (int(g) for g in m.groups())
    return h * 3600 + mi * 60 + s


def format_target_size(size_bytes) -> str:
    """Byte count → "<n>MB" rounded to the nearest megabyte, or "Unknown"."""
    try:
        size = float(size_bytes)
    except (TypeError, ValueError):
        return UNKNOWN_ESTIMATE
    if not math.isfinite(size) or size <= 0:
        return UNKNOWN_ESTIMATE
    return f"{int(size / 1024 / 1024 + 0.5)}MB"


def make_snapshot(percent=None, timemark=None, speed=None, target_size=None) -> ProgressSnapshot:
    """Build a snapshot from whatever data points are available."""
    try:
        pct = float(percent) if percent is not None else 0.0
    except (TypeError, ValueError):
        pct = 0.0
    if not math.isfinite(pct):
        pct = 0.0
    return ProgressSnapshot(
        percent=max(0.0, min(pct, 100.0)),
        time=parse_timemark(timemark),
        speed=str(speed) if speed else "0x",
        eta=format_target_size(target_size),
    )


class ProgressParser:
    """
    Incremental parser: feed() it one stdout line at a time and it returns
    a snapshot whenever a progress block is complete.

    *duration* is the total media length in seconds; percent stays at 0
    when it is unknown (0).
    """

    def __init__(self, duration: float = 0.0):
        self.duration = duration if duration and duration > 0 else 0.0
        self.finished = False
        self._fields: dict[str, str] = {}

    def feed(self, line: str) -> ProgressSnapshot | None:
        m = _PROGRESS_KV.match(line.strip())
        if not m:
            return None

        key, value = m.group(1), m.group(2).strip()
        if key != "progress":
            self._fields[key] = value
            return None

        if value == "end":
            self.finished = True
        return self._snapshot()

    def _snapshot(self) -> ProgressSnapshot:
        fields = self._fields
        timemark = fields.get("out_time")
        seconds = self._out_seconds()

        percent = 0.0
        if self.duration:
            percent = seconds / self.duration * 100.0
        if self.finished:
            percent = 100.0

        speed = fields.get("speed")
        if not speed or speed == "N/A":
            speed = fields.get("fps")

        size = fields.get("total_size")
        return make_snapshot(
            percent=percent,
            timemark=timemark,
            speed=speed,
            target_size=size if size and size != "N/A" else None,
        )

    def _out_seconds(self) -> float:
        """Precise output position; out_time_us is preferred over out_time."""
        for key in ("out_time_us", "out_time_ms"):  # both are microseconds
            raw = self._fields.get(key)
            if raw and raw.lstrip("-").isdigit():
                return max(int(raw), 0) / 1_000_000
        return float(parse_timemark(self._fields.get("out_time")))
