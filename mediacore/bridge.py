"""
mediacore.bridge
~~~~~~~~~~~~~~~~
EventBridge relays the supervisor's lifecycle events to the UI and
answers a handful of host-status queries.

Delivery is best effort: when the observer has been torn down (window
closed, widget deleted) events are dropped without raising. Order is
preserved per job, and the bridge enforces the lifecycle shape itself —
nothing is forwarded for a job after its terminal event.
"""

from __future__ import annotations

import logging
import os
import platform as _platform
import sys
import time
from typing import Callable

import PySide6
import shiboken6
from PySide6.QtCore import QObject, Signal, qVersion
from PySide6.QtWidgets import QApplication, QSystemTrayIcon

from mediacore.log import log_to_console
from mediacore.models import TERMINAL_EVENTS, JobEvent, JobStarted
from mediacore.supervisor import JobSupervisor

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"
_STARTED_AT = time.monotonic()


class EventBridge(QObject):

    event_delivered = Signal(object)   # JobEvent, re-emitted for the observer

    def __init__(self, supervisor: JobSupervisor, parent=None):
        super().__init__(parent)
        self._supervisor = supervisor
        self._observer: QObject | None = None
        self._handler: Callable | None = None
        self._open_jobs: set[int] = set()
        self._tray: QSystemTrayIcon | None = None

        supervisor.job_event.connect(self._on_job_event)

    # ── Observer management ───────────────────────────────────────────────────

    def attach(self, observer: QObject, handler: Callable[[JobEvent], None]) -> None:
        """Deliver every future event to *handler*, for as long as *observer* lives."""
        self.detach()
        self._observer = observer
        self._handler = handler
        self.event_delivered.connect(handler)
        observer.destroyed.connect(self._on_observer_destroyed)
        logger.debug("[BRIDGE] Observer attached: %s", type(observer).__name__)

    def detach(self) -> None:
        if self._handler is not None:
            try:
                self.event_delivered.disconnect(self._handler)
            except (RuntimeError, TypeError):
                pass  # receiver already gone
        if self._observer is not None and shiboken6.isValid(self._observer):
            try:
                self._observer.destroyed.disconnect(self._on_observer_destroyed)
            except (RuntimeError, TypeError):
                pass
        self._observer = None
        self._handler = None

    def has_observer(self) -> bool:
        return self._observer is not None and shiboken6.isValid(self._observer)

    # ── Delivery ──────────────────────────────────────────────────────────────

    def _on_job_event(self, event: JobEvent) -> None:
        job_id = event.job_id
        if isinstance(event, JobStarted):
            self._open_jobs.add(job_id)
        elif job_id not in self._open_jobs:
            logger.debug("[BRIDGE] %s for unknown/closed job %d dropped", event.channel, job_id)
            return
        if isinstance(event, TERMINAL_EVENTS):
            self._open_jobs.discard(job_id)

        if not self.has_observer():
            logger.debug("[BRIDGE] No observer, dropped %s for job %d", event.channel, job_id)
            return
        try:
            self.event_delivered.emit(event)
        except RuntimeError as exc:
            # observer deleted between the check and the emit
            logger.debug("[BRIDGE] Delivery of %s failed: %s", event.channel, exc)

    def _on_observer_destroyed(self, *_):
        logger.debug("[BRIDGE] Observer destroyed, events will be dropped")
        self._observer = None
        self.detach()

    # ── Job operations, forwarded ─────────────────────────────────────────────

    @property
    def supervisor(self) -> JobSupervisor:
        return self._supervisor

    def is_busy(self) -> bool:
        return self._supervisor.is_busy()

    # ── Host-status queries ───────────────────────────────────────────────────

    def app_version(self) -> str:
        return APP_VERSION

    def platform(self) -> str:
        return sys.platform

    def system_info(self) -> dict:
        return {
            "platform": sys.platform,
            "arch": _platform.machine(),
            "version": _platform.python_version(),
            "pyside_version": PySide6.__version__,
            "qt_version": qVersion(),
        }

    def app_status(self) -> dict:
        app = QApplication.instance()
        windows = app.topLevelWindows() if isinstance(app, QApplication) else []
        return {
            "is_dev": bool(os.environ.get("CLIPWRIGHT_DEV")),
            "platform": sys.platform,
            "arch": _platform.machine(),
            "python_version": _platform.python_version(),
            "qt_version": qVersion(),
            "memory_rss": _memory_rss(),
            "uptime": round(time.monotonic() - _STARTED_AT, 3),
            "window_count": len(windows),
            "is_busy": self._supervisor.is_busy(),
        }

    def log_to_console(self, message: str, level: str = "info") -> str:
        return log_to_console(message, level)

    def show_notification(self, title: str, body: str) -> bool:
        """Tray balloon when the platform supports it; returns whether it was shown."""
        if not isinstance(QApplication.instance(), QApplication):
            return False
        if not QSystemTrayIcon.isSystemTrayAvailable() or not QSystemTrayIcon.supportsMessages():
            logger.debug("[BRIDGE] Notifications unsupported, skipped: %s", title)
            return False
        if self._tray is None:
            self._tray = QSystemTrayIcon(self)
            self._tray.setIcon(QApplication.instance().windowIcon())
            self._tray.show()
        self._tray.showMessage(title, body)
        return True


def _memory_rss() -> int | None:
    """Peak resident set size in bytes, where the platform exposes it."""
    try:
        import resource
    except ImportError:
        return None
    rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # Linux reports kilobytes, macOS bytes
    return rss if sys.platform == "darwin" else rss * 1024
