"""
mediacore.errors
~~~~~~~~~~~~~~~~
Exceptions raised by the probe, the command builder and the supervisor.

Each one also subclasses the closest built-in so callers that only know
about FileNotFoundError / ValueError / TimeoutError still catch them.
"""

from __future__ import annotations


class MediaError(Exception):
    """Base exception for mediacore failures."""

    pass


class NotFound(MediaError, FileNotFoundError):
    """An input path does not exist."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"File not found: {path}")


class InvalidRequest(MediaError, ValueError):
    """Empty or ill-formed request (empty path, no merge inputs, bad option)."""

    pass


class Busy(MediaError, RuntimeError):
    """A job is already running."""

    def __init__(self, message: str = "Another job is already in progress"):
        super().__init__(message)


class ProbeTimeout(MediaError, TimeoutError):
    """ffprobe did not answer within the probe timeout."""

    def __init__(self, path, seconds: float):
        self.path = path
        self.seconds = seconds
        super().__init__(f"ffprobe timed out after {seconds:g}s on {path}")


class NoVideoStream(MediaError):
    """ffprobe succeeded but the file has no video track."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"No video stream found in {path}")


class EngineFailure(MediaError, RuntimeError):
    """The ffmpeg subprocess exited non-zero or could not be run."""

    def __init__(self, reason: str, returncode: int | None = None):
        self.reason = reason
        self.returncode = returncode
        super().__init__(reason)
