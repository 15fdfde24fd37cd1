"""
mediacore.log
~~~~~~~~~~~~~
Application logging: console + daily-rotated file, plus a handler that
forwards records to the UI's debug console through a Qt signal.
"""

from __future__ import annotations

import logging
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from PySide6.QtCore import QObject, Signal

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_LEVELS = {
    "debug": logging.DEBUG,
    "info":  logging.INFO,
    "warn":  logging.WARNING,
    "error": logging.ERROR,
}

ui_logger = logging.getLogger("ui.console")


def setup_logging(level: str | int = logging.INFO, log_dir: Path | None = None) -> Path | None:
    """
    Configure the root logger. Returns the log file path, or None when
    *log_dir* was not given (console only).
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        if not isinstance(handler, QtLogHandler):
            root_logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    log_file = None
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / "clipwright.log"
        file_handler = TimedRotatingFileHandler(
            log_file,
            when="midnight",
            interval=1,
            backupCount=7,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Silence noisy third-party loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    return log_file


def log_to_console(message: str, level: str = "info") -> str:
    """
    Write a UI-originated message into the application log and return the
    line as the console shows it.
    """
    key = level.lower()
    if key not in _LEVELS:
        key = "info"
    timestamp = datetime.now().isoformat(timespec="milliseconds")
    line = f"[{timestamp}] [{key.upper()}] {message}"
    ui_logger.log(_LEVELS[key], message)
    return line


class _Emitter(QObject):
    record_emitted = Signal(str, str)   # (level name, formatted line)


class QtLogHandler(logging.Handler):
    """
    logging.Handler that re-emits every record as a Qt signal.

    Records logged from worker threads are delivered to widgets on the GUI
    thread through the queued connection Qt sets up automatically.
    """

    def __init__(self, level=logging.NOTSET):
        super().__init__(level)
        self._emitter = _Emitter()
        self.record_emitted = self._emitter.record_emitted
        self.setFormatter(logging.Formatter(LOG_FORMAT))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
            self._emitter.record_emitted.emit(record.levelname, line)
        except RuntimeError:
            # emitter already deleted during interpreter shutdown
            pass
        except Exception:
            self.handleError(record)
