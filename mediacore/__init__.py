from .models import (
    MediaInfo, JobRequest, Operation, Quality, JobState, ProgressSnapshot,
    JobStarted, JobProgress, JobCompleted, JobFailed, JobStopped, JobOutcome,
)
from .errors import (
    MediaError, NotFound, InvalidRequest, Busy, ProbeTimeout, NoVideoStream, EngineFailure,
)
from .probe import inspect, get_duration, format_bytes
from .progress import ProgressParser, parse_timemark
from .command_builder import build_command, command_as_string
from .supervisor import JobSupervisor
from .bridge import EventBridge

__all__ = [
    "MediaInfo", "JobRequest", "Operation", "Quality", "JobState", "ProgressSnapshot",
    "JobStarted", "JobProgress", "JobCompleted", "JobFailed", "JobStopped", "JobOutcome",
    "MediaError", "NotFound", "InvalidRequest", "Busy", "ProbeTimeout", "NoVideoStream",
    "EngineFailure",
    "inspect", "get_duration", "format_bytes",
    "ProgressParser", "parse_timemark",
    "build_command", "command_as_string",
    "JobSupervisor",
    "EventBridge",
]
