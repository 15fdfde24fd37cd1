from pathlib import Path

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel,
    QPushButton, QDialog, QMessageBox
)
from PySide6.QtCore import Qt, Signal, QUrl
from PySide6.QtGui import QDesktopServices

from mediacore.bridge import EventBridge
from mediacore.config import Settings
from mediacore.errors import MediaError
from mediacore.log import QtLogHandler
from mediacore.models import JobCompleted, JobFailed, JobStopped
from ui.dialogs.new_job import NewJobDialog
from ui.pages._console import DebugConsole
from ui.pages._job_panel import JobPanel


class HomePage(QWidget):
    """Main page: the job panel above the debug console."""

    probe_requested = Signal(str)   # input path chosen in the dialog

    def __init__(self, switch_callback, bridge: EventBridge, settings: Settings,
                 log_handler: QtLogHandler, parent=None):
        super().__init__(parent)
        self.switch_callback = switch_callback
        self.bridge = bridge
        self.settings = settings

        root = QVBoxLayout(self)
        root.setContentsMargins(0, 0, 0, 0)
        root.setSpacing(0)

        # ── Header bar ────────────────────────────────────────────────────────
        header_bar = QWidget()
        header_bar.setFixedHeight(56)
        header_bar.setStyleSheet("background-color: #1e1e1e; border-bottom: 1px solid #333;")
        header_layout = QHBoxLayout(header_bar)
        header_layout.setContentsMargins(16, 0, 16, 0)

        page_title = QLabel("Clipwright")
        page_title.setStyleSheet("color: #e0e0e0; font-size: 14pt; font-weight: 700;")
        header_layout.addWidget(page_title)
        header_layout.addStretch()

        self.new_job_btn = QPushButton("＋  New Job")
        self.new_job_btn.setFixedHeight(32)
        self.new_job_btn.setCursor(Qt.CursorShape.PointingHandCursor)
        self.new_job_btn.setStyleSheet("""
            QPushButton {
                background-color: #558B6E;
                color: white;
                border: none;
                border-radius: 6px;
                padding: 0 14px;
                font-size: 10pt;
                font-weight: 600;
            }
            QPushButton:hover    { background-color: #67a382; }
            QPushButton:pressed  { background-color: #446e58; }
            QPushButton:disabled { background-color: #333; color: #777; }
        """)
        self.new_job_btn.clicked.connect(self._new_job)
        header_layout.addWidget(self.new_job_btn)

        self.settings_btn = QPushButton("⚙")
        self.settings_btn.setFixedSize(32, 32)
        self.settings_btn.setCursor(Qt.CursorShape.PointingHandCursor)
        self.settings_btn.setStyleSheet("""
            QPushButton {
                background-color: transparent;
                color: #aaaaaa;
                border: 1px solid #444;
                border-radius: 6px;
                font-size: 14pt;
            }
            QPushButton:hover { color: #e0e0e0; border-color: #666; }
        """)
        self.settings_btn.clicked.connect(lambda: switch_callback("settings"))
        header_layout.addWidget(self.settings_btn)

        root.addWidget(header_bar)

        # ── Body ──────────────────────────────────────────────────────────────
        body = QWidget()
        body.setStyleSheet("background-color: #121212;")
        body_layout = QVBoxLayout(body)
        body_layout.setContentsMargins(24, 16, 24, 16)
        body_layout.setSpacing(16)

        self.job_panel = JobPanel()
        self.job_panel.stop_requested.connect(self._on_stop_requested)
        self.job_panel.reveal_requested.connect(self._on_reveal_requested)
        body_layout.addWidget(self.job_panel)

        self.console = DebugConsole(log_handler)
        body_layout.addWidget(self.console, 1)

        root.addWidget(body, 1)

        # Events arrive here until this page is destroyed
        self.bridge.attach(self, self.on_job_event)

    # ── New job via dialog ────────────────────────────────────────────────────

    def _new_job(self):
        dialog = NewJobDialog(self.settings, self)
        dialog.input_chosen.connect(self.probe_requested)
        if dialog.exec() != QDialog.DialogCode.Accepted:
            return

        try:
            request = dialog.get_request()
            self.bridge.supervisor.start(request)
        except (MediaError, ValueError) as exc:
            QMessageBox.warning(self, "Cannot start job", str(exc))

    # ── Bridge events ─────────────────────────────────────────────────────────

    def on_job_event(self, event) -> None:
        self.job_panel.show_event(event)
        busy = self.bridge.is_busy()
        self.new_job_btn.setEnabled(not busy)

        if not self.settings.notifications:
            return
        if isinstance(event, JobCompleted):
            self.bridge.show_notification("Job finished", Path(event.output).name)
        elif isinstance(event, JobFailed):
            self.bridge.show_notification("Job failed", (event.reason.splitlines() or [""])[-1][:200])
        elif isinstance(event, JobStopped):
            self.bridge.show_notification("Job stopped", f"Job #{event.job_id} was stopped")

    # ── Panel signal handlers ─────────────────────────────────────────────────

    def _on_stop_requested(self):
        self.bridge.supervisor.stop()

    def _on_reveal_requested(self, output: str):
        if output:
            QDesktopServices.openUrl(QUrl.fromLocalFile(str(Path(output).parent)))
