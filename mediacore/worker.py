"""
mediacore.worker
~~~~~~~~~~~~~~~~
QThreads that run the external engine so the GUI thread never blocks.

TranscodeWorker signals
-----------------------
progress_changed(int, ProgressSnapshot)   one per ffmpeg progress block
succeeded(int, str)                       job id, output path
failed(int, str)                          job id, engine error text
cancelled(int)                            job id, after cancel() took effect

ProbeWorker signals
-------------------
probed(str, MediaInfo)
probe_failed(str, str, str)               path, error kind, message
"""

from __future__ import annotations

import json
import logging
import subprocess
import threading
from collections import deque
from pathlib import Path

from PySide6.QtCore import QThread, Signal

from mediacore.command_builder import build_probe_command, command_as_string
from mediacore.errors import EngineFailure, MediaError
from mediacore.models import JobRequest, Operation
from mediacore.paths import FFPROBE_BIN
from mediacore.probe import PROBE_TIMEOUT_SECONDS, inspect, parse_duration
from mediacore.progress import ProgressParser

logger = logging.getLogger(__name__)

STDERR_TAIL_LINES = 20


class TranscodeWorker(QThread):

    progress_changed = Signal(int, object)
    succeeded        = Signal(int, str)
    failed           = Signal(int, str)
    cancelled        = Signal(int)

    def __init__(
        self,
        job_id: int,
        request: JobRequest,
        command: list[str],
        ffprobe: Path | str = FFPROBE_BIN,
        parent=None,
    ):
        super().__init__(parent)
        self.job_id   = job_id
        self._request = request
        self._command = command
        self._ffprobe = ffprobe
        self._process: subprocess.Popen | None = None
        self._lock = threading.Lock()
        self._cancel_requested = False
        logger.debug("[WORKER] Created job %d: %s", job_id, command_as_string(command))

    # ── QThread entry point ───────────────────────────────────────────────────

    def run(self):
        logger.info("[WORKER] Job %d thread started", self.job_id)
        try:
            duration = self._total_duration()
            logger.info("[WORKER] Job %d duration = %.2fs", self.job_id, duration)
            self._run_ffmpeg(duration)
        except Exception as exc:
            if self._cancel_requested:
                logger.info("[WORKER] Job %d cancelled (%s)", self.job_id, exc)
                self.cancelled.emit(self.job_id)
            elif isinstance(exc, EngineFailure):
                logger.error("[WORKER] Job %d failed with code %s:\n  %s",
                             self.job_id, exc.returncode, exc.reason.replace("\n", "\n  "))
                self.failed.emit(self.job_id, exc.reason)
            else:
                logger.exception("[WORKER] Job %d crashed", self.job_id)
                self.failed.emit(self.job_id, _describe_exception(exc))
            return

        if self._cancel_requested:
            logger.info("[WORKER] Job %d cancelled", self.job_id)
            self.cancelled.emit(self.job_id)
            return

        logger.info("[WORKER] Job %d done: %s", self.job_id, self._request.output)
        self.succeeded.emit(self.job_id, str(self._request.output))

    # ── Cancel ────────────────────────────────────────────────────────────────

    def cancel(self):
        """
        Ask the running child (ffprobe during the duration lookup, ffmpeg
        afterwards) to terminate. Returns immediately; wait() for the exit.
        """
        with self._lock:
            self._cancel_requested = True
            process = self._process
        if process and process.poll() is None:
            logger.info("[WORKER] Job %d terminating PID %d", self.job_id, process.pid)
            process.terminate()
        else:
            logger.debug("[WORKER] Job %d cancel() — no running process", self.job_id)

    def kill(self):
        """Last resort when ffmpeg ignores terminate()."""
        with self._lock:
            process = self._process
        if process and process.poll() is None:
            logger.warning("[WORKER] Job %d killing PID %d", self.job_id, process.pid)
            process.kill()

    # ── Internal ──────────────────────────────────────────────────────────────

    def _total_duration(self) -> float:
        if self._request.operation == Operation.THUMBNAIL:
            return 0.0
        total = 0.0
        for path in self._request.inputs:
            if self._cancel_requested:
                break
            total += self._input_duration(Path(path))
        return total

    def _input_duration(self, path: Path) -> float:
        # Same lookup as probe.get_duration, but through _process so that
        # cancel() and kill() reach ffprobe too.
        with self._lock:
            if self._cancel_requested:
                return 0.0
            try:
                self._process = subprocess.Popen(
                    build_probe_command(path, self._ffprobe),
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.DEVNULL,
                    text=True,
                    errors="replace",
                )
            except OSError as exc:
                logger.debug("[WORKER] Job %d no duration for %s: %s", self.job_id, path, exc)
                return 0.0
            process = self._process

        try:
            stdout, _ = process.communicate(timeout=PROBE_TIMEOUT_SECONDS)
        except subprocess.TimeoutExpired:
            logger.warning("[WORKER] Job %d ffprobe timed out on %s", self.job_id, path.name)
            process.kill()
            process.communicate()
            return 0.0
        finally:
            with self._lock:
                self._process = None

        if process.returncode != 0:
            return 0.0
        try:
            return parse_duration(json.loads(stdout))
        except ValueError:
            return 0.0

    def _run_ffmpeg(self, duration: float) -> None:
        with self._lock:
            if self._cancel_requested:
                return
            self._process = subprocess.Popen(
                self._command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        process = self._process
        logger.info("[WORKER] Job %d PID = %d", self.job_id, process.pid)

        # ── Drain stderr in a background thread to prevent pipe deadlock ──────
        # ffmpeg writes its banner and errors to stderr. If only stdout is
        # read, the stderr pipe buffer fills up, ffmpeg blocks on it and the
        # progress loop below hangs.
        stderr_tail: deque[str] = deque(maxlen=STDERR_TAIL_LINES)

        def _drain_stderr():
            for line in process.stderr:
                stripped = line.rstrip()
                if stripped:
                    stderr_tail.append(stripped)

        stderr_thread = threading.Thread(target=_drain_stderr, daemon=True)
        stderr_thread.start()

        # ── Read progress from stdout ─────────────────────────────────────────
        parser = ProgressParser(duration)
        snapshots = 0
        for line in process.stdout:
            snapshot = parser.feed(line)
            if snapshot is None or self._cancel_requested:
                continue
            snapshots += 1
            self.progress_changed.emit(self.job_id, snapshot)

        process.wait()
        stderr_thread.join()

        logger.info("[WORKER] Job %d ffmpeg exited with code %d (%d progress updates)",
                    self.job_id, process.returncode, snapshots)
        if process.returncode != 0:
            raise EngineFailure(
                "\n".join(stderr_tail) or f"ffmpeg exited with code {process.returncode}",
                process.returncode,
            )


class ProbeWorker(QThread):
    """Runs inspect() off the GUI thread; independent of any running job."""

    probed       = Signal(str, object)
    probe_failed = Signal(str, str, str)

    def __init__(self, path: Path | str, ffprobe: Path | str = FFPROBE_BIN, parent=None):
        super().__init__(parent)
        self._path = str(path)
        self._ffprobe = ffprobe

    def run(self):
        try:
            info = inspect(self._path, self._ffprobe)
        except MediaError as exc:
            logger.info("[WORKER] Probe of %s failed: %s", self._path, exc)
            self.probe_failed.emit(self._path, type(exc).__name__, str(exc))
            return
        except Exception as exc:
            logger.exception("[WORKER] Probe of %s crashed", self._path)
            self.probe_failed.emit(self._path, type(exc).__name__, str(exc))
            return
        self.probed.emit(self._path, info)


def _describe_exception(exc: Exception) -> str:
    if isinstance(exc, FileNotFoundError):
        return f"ffmpeg not found: {exc.filename or exc}"
    return str(exc) or type(exc).__name__
