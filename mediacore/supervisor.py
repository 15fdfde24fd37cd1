"""
mediacore.supervisor
~~~~~~~~~~~~~~~~~~~~
JobSupervisor owns the single transcoding job slot.

    IDLE ──start()──▶ RUNNING ──exit 0──▶ COMPLETING ──▶ IDLE   (completed)
                         │ ──exit ≠0──▶ FAILED ─────────▶ IDLE   (error)
                         └─ stop() ───▶ STOPPED ────────▶ IDLE   (stopped)

Every lifecycle event goes out through the one ``job_event`` signal, in
order: JobStarted, JobProgress*, then exactly one terminal event. The
state returns to IDLE before the terminal event is emitted, so a handler
may call start() again straight away.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

from PySide6.QtCore import QObject, Signal

from mediacore.command_builder import build_command, command_as_string
from mediacore.errors import Busy, InvalidRequest, NotFound
from mediacore.models import (
    JobCompleted, JobFailed, JobOutcome, JobProgress, JobRequest, JobStarted,
    JobState, JobStopped, MediaInfo, Operation,
)
from mediacore.paths import resolve_ffmpeg, resolve_ffprobe
from mediacore.probe import inspect
from mediacore.worker import ProbeWorker, TranscodeWorker

logger = logging.getLogger(__name__)

# How long stop() lets ffmpeg exit after SIGTERM before killing it
TERMINATE_GRACE_MS = 5000


class JobSupervisor(QObject):

    job_event     = Signal(object)          # JobEvent
    state_changed = Signal(object)          # JobState
    probe_finished = Signal(str, object)    # (path, MediaInfo)
    probe_failed   = Signal(str, str, str)  # (path, error kind, message)

    def __init__(self, ffmpeg: Path | str | None = None, ffprobe: Path | str | None = None,
                 parent=None):
        super().__init__(parent)
        self.ffmpeg  = Path(ffmpeg) if ffmpeg else resolve_ffmpeg()
        self.ffprobe = Path(ffprobe) if ffprobe else resolve_ffprobe()

        # _lock guards _state, _worker and _job_id
        self._lock = threading.RLock()
        self._state = JobState.IDLE
        self._worker: TranscodeWorker | None = None
        self._request: JobRequest | None = None
        self._job_id = 0
        self._last_outcome: JobOutcome | None = None
        self._probe_workers: set[ProbeWorker] = set()

    # ── Queries ───────────────────────────────────────────────────────────────

    @property
    def state(self) -> JobState:
        return self._state

    @property
    def last_outcome(self) -> JobOutcome | None:
        return self._last_outcome

    @property
    def current_job_id(self) -> int | None:
        with self._lock:
            return self._job_id if self._state != JobState.IDLE else None

    def is_busy(self) -> bool:
        return self._state != JobState.IDLE

    # ── Job control ───────────────────────────────────────────────────────────

    def start(self, request: JobRequest) -> int:
        """
        Admit *request* and launch ffmpeg for it. Returns the new job id.

        Raises (synchronously, before anything is spawned):
            Busy            – a job is already active
            NotFound        – an input file does not exist
            InvalidRequest  – anything else wrong with the request
        """
        with self._lock:
            if self._state != JobState.IDLE:
                logger.info("[SUPERVISOR] start() rejected — state is %s", self._state.name)
                raise Busy()

            self._validate(request)
            command = build_command(request, self.ffmpeg)
            self._prepare_output(Path(request.output))

            self._job_id += 1
            job_id = self._job_id
            worker = TranscodeWorker(job_id, request, command, self.ffprobe)
            worker.progress_changed.connect(self._on_worker_progress)
            worker.succeeded.connect(self._on_worker_succeeded)
            worker.failed.connect(self._on_worker_failed)
            worker.cancelled.connect(self._on_worker_cancelled)

            self._worker = worker
            self._request = request
            self._set_state(JobState.RUNNING)

        description = command_as_string(command)
        logger.info("[SUPERVISOR] Job %d started: %s", job_id, description)
        self.job_event.emit(JobStarted(job_id, description))
        worker.start()
        return job_id

    def stop(self) -> bool:
        """
        Terminate the running job and wait for ffmpeg to exit.
        Returns False (and does nothing) when no job is running.
        """
        with self._lock:
            if self._state != JobState.RUNNING:
                logger.debug("[SUPERVISOR] stop() ignored — state is %s", self._state.name)
                return False
            worker = self._worker
            job_id = self._job_id
            self._set_state(JobState.STOPPED)

        logger.info("[SUPERVISOR] Stopping job %d", job_id)
        worker.cancel()
        if not worker.wait(TERMINATE_GRACE_MS):
            worker.kill()
            worker.wait()

        self._finish(job_id, JobState.STOPPED)
        self.job_event.emit(JobStopped(job_id))
        return True

    def set_binaries(self, ffmpeg: Path | str, ffprobe: Path | str) -> None:
        """
        Switch the ffmpeg/ffprobe used from the next start() or probe on.
        A running job keeps the binaries it was started with.
        """
        with self._lock:
            self.ffmpeg  = Path(ffmpeg)
            self.ffprobe = Path(ffprobe)
        logger.info("[SUPERVISOR] Binaries set: ffmpeg=%s ffprobe=%s", self.ffmpeg, self.ffprobe)

    # ── Probing (independent of the job slot) ─────────────────────────────────

    def probe(self, path: Path | str) -> MediaInfo:
        return inspect(path, self.ffprobe)

    def probe_async(self, path: Path | str) -> None:
        """Result arrives through probe_finished / probe_failed."""
        worker = ProbeWorker(path, self.ffprobe)
        worker.probed.connect(self.probe_finished)
        worker.probe_failed.connect(self.probe_failed)
        worker.finished.connect(self._reap_probe_workers)
        self._probe_workers.add(worker)
        worker.start()

    def _reap_probe_workers(self) -> None:
        for worker in [w for w in self._probe_workers if w.isFinished()]:
            self._probe_workers.discard(worker)
            worker.deleteLater()

    # ── Worker signal handlers ────────────────────────────────────────────────

    def _is_live(self, job_id: int) -> bool:
        return job_id == self._job_id and self._state == JobState.RUNNING

    def _on_worker_progress(self, job_id: int, snapshot) -> None:
        with self._lock:
            if not self._is_live(job_id):
                return
        self.job_event.emit(JobProgress(job_id, snapshot))

    def _on_worker_succeeded(self, job_id: int, output: str) -> None:
        with self._lock:
            if not self._is_live(job_id):
                logger.debug("[SUPERVISOR] Late completion for job %d dropped", job_id)
                return
            self._set_state(JobState.COMPLETING)
        self._finish(job_id, JobState.COMPLETING, output=Path(output))
        self.job_event.emit(JobCompleted(job_id, output))

    def _on_worker_failed(self, job_id: int, reason: str) -> None:
        with self._lock:
            if not self._is_live(job_id):
                logger.debug("[SUPERVISOR] Late failure for job %d dropped", job_id)
                return
            self._set_state(JobState.FAILED)
        self._finish(job_id, JobState.FAILED, message=reason)
        self.job_event.emit(JobFailed(job_id, reason))

    def _on_worker_cancelled(self, job_id: int) -> None:
        logger.debug("[SUPERVISOR] Worker for job %d confirmed cancellation", job_id)

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _finish(self, job_id: int, final: JobState, output: Path | None = None,
                message: str = "") -> None:
        """Join the worker thread, then free the slot."""
        worker = self._worker
        if worker is not None:
            worker.wait()
        with self._lock:
            self._worker = None
            self._request = None
            self._last_outcome = JobOutcome(job_id, final, output, message)
            self._set_state(JobState.IDLE)
        if worker is not None:
            worker.deleteLater()

    def _set_state(self, state: JobState) -> None:
        if state == self._state:
            return
        logger.debug("[SUPERVISOR] State %s → %s", self._state.name, state.name)
        self._state = state
        self.state_changed.emit(state)

    @staticmethod
    def _validate(request: JobRequest) -> None:
        if not isinstance(request.operation, Operation):
            raise InvalidRequest(f"Unknown operation: {request.operation!r}")
        if not request.inputs:
            raise InvalidRequest("At least one input file is required")
        if request.operation != Operation.MERGE and len(request.inputs) > 1:
            raise InvalidRequest(f"{request.operation.value} takes exactly one input file")

        for path in request.inputs:
            if not str(path).strip() or str(path) == ".":
                raise InvalidRequest("Input path must not be empty")
            if not Path(path).exists():
                raise NotFound(path)
            if not Path(path).is_file() or not os.access(path, os.R_OK):
                raise InvalidRequest(f"Input is not a readable file: {path}")

        output = request.output
        if output is None or not str(output).strip() or str(output) == ".":
            raise InvalidRequest("Output path must not be empty")
        output = Path(output)
        if output.is_dir():
            raise InvalidRequest(f"Output path is a directory: {output}")
        if any(output.resolve() == Path(p).resolve() for p in request.inputs):
            raise InvalidRequest("Output path must differ from the input file")

    @staticmethod
    def _prepare_output(output: Path) -> None:
        """Create the output folder. Runs only once the request is known to be buildable."""
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise InvalidRequest(f"Cannot create output folder {output.parent}: {exc}") from exc
        if not os.access(output.parent, os.W_OK):
            raise InvalidRequest(f"Output folder is not writable: {output.parent}")
