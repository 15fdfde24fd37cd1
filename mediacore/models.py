"""
mediacore.models
~~~~~~~~~~~~~~~~
Pure dataclasses — no Qt, no I/O.
These travel freely between mediacore and ui.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Union


# ── Enums ─────────────────────────────────────────────────────────────────────

class Operation(str, Enum):
    CONVERT       = "convert"
    THUMBNAIL     = "thumbnail"
    EXTRACT_AUDIO = "extract-audio"
    COMPRESS      = "compress"
    MERGE         = "merge"


class Quality(str, Enum):
    LOW    = "low"
    MEDIUM = "medium"
    HIGH   = "high"


class JobState(Enum):
    IDLE       = auto()  # nothing running, start() is accepted
    RUNNING    = auto()  # the engine subprocess is alive
    COMPLETING = auto()  # engine exited 0, releasing the worker
    STOPPED    = auto()  # stop() requested, waiting for the engine to exit
    FAILED     = auto()  # engine failed, releasing the worker


VIDEO_FORMATS = ("mp4", "avi", "mov", "webm", "gif")
AUDIO_FORMATS = ("mp3", "wav", "aac")


# ── Probe result (returned by mediacore.probe) ───────────────────────────────

@dataclass(frozen=True)
class MediaInfo:
    """Metadata extracted from a media file via ffprobe."""
    duration: float        # seconds, 0.0 if unknown
    size: str              # human readable, e.g. "1.5 KB"
    bitrate: str           # bits/sec as decimal text
    codec: str
    resolution: str        # "WxH"
    fps: float

    def to_dict(self) -> dict:
        return asdict(self)


# ── Job request ───────────────────────────────────────────────────────────────

@dataclass
class JobRequest:
    """
    Everything needed to describe one engine run.

    `inputs` holds one path for every operation except merge, which takes
    one or more. Options that do not apply to the operation are ignored by
    the command builder.
    """
    operation: Operation
    inputs: list[Path]
    output: Path
    format: str | None = None          # target container, e.g. "mp4", "gif"
    quality: Quality | None = None
    resolution: str | None = None      # "WxH" override
    fps: float | None = None           # frame-rate override
    time_offset: float = 10.0          # thumbnail seek, seconds
    audio_format: str | None = None    # "mp3" | "wav" | "aac"

    @classmethod
    def create(cls, operation, inputs, output, **options) -> "JobRequest":
        """Build a request from loosely typed values (strings from the UI)."""
        if isinstance(inputs, (str, Path)):
            inputs = [inputs]
        quality = options.pop("quality", None)
        return cls(
            operation=Operation(operation),
            inputs=[Path(p) for p in inputs],
            output=Path(output) if output else Path(""),
            quality=Quality(quality) if quality else None,
            **options,
        )

    @property
    def primary_input(self) -> Path:
        return self.inputs[0]

    def target_format(self) -> str:
        """Explicit format, else the output suffix, else mp4."""
        if self.operation == Operation.COMPRESS:
            return "mp4"
        if self.format:
            return self.format.lower().lstrip(".")
        suffix = self.output.suffix.lower().lstrip(".")
        return suffix or "mp4"

    def target_audio_format(self) -> str:
        if self.audio_format:
            return self.audio_format.lower().lstrip(".")
        suffix = self.output.suffix.lower().lstrip(".")
        return suffix if suffix in AUDIO_FORMATS else "mp3"


# ── Progress ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ProgressSnapshot:
    percent: float         # 0.0 – 100.0
    time: int              # processed media time, whole seconds
    speed: str             # engine reported, e.g. "1.5x"
    eta: str               # "<n>MB" or "Unknown"


# ── Lifecycle events ──────────────────────────────────────────────────────────
# One ordered stream per job: started, progress*, then exactly one of
# completed / error / stopped.

@dataclass(frozen=True)
class JobStarted:
    job_id: int
    command: str
    channel = "started"

    def to_message(self) -> dict:
        return {"channel": self.channel, "job_id": self.job_id, "command": self.command}


@dataclass(frozen=True)
class JobProgress:
    job_id: int
    snapshot: ProgressSnapshot
    channel = "progress"

    def to_message(self) -> dict:
        return {"channel": self.channel, "job_id": self.job_id, **asdict(self.snapshot)}


@dataclass(frozen=True)
class JobCompleted:
    job_id: int
    output: str
    channel = "completed"

    def to_message(self) -> dict:
        return {"channel": self.channel, "job_id": self.job_id, "output": self.output}


@dataclass(frozen=True)
class JobFailed:
    job_id: int
    reason: str
    channel = "error"

    def to_message(self) -> dict:
        return {"channel": self.channel, "job_id": self.job_id, "message": self.reason}


@dataclass(frozen=True)
class JobStopped:
    job_id: int
    channel = "stopped"

    def to_message(self) -> dict:
        return {"channel": self.channel, "job_id": self.job_id}


JobEvent = Union[JobStarted, JobProgress, JobCompleted, JobFailed, JobStopped]
TERMINAL_EVENTS = (JobCompleted, JobFailed, JobStopped)


@dataclass
class JobOutcome:
    """What the supervisor remembers about the last finished job."""
    job_id: int
    state: JobState
    output: Path | None = None
    message: str = field(default="")
