from PySide6.QtWidgets import (
    QFrame, QVBoxLayout, QSizePolicy, QLabel, QHBoxLayout,
    QProgressBar, QWidget, QPushButton
)
from PySide6.QtCore import Qt, Signal

from mediacore.models import (
    JobCompleted, JobFailed, JobProgress, JobStarted, JobState, JobStopped,
)


class StatusBadge(QLabel):
    """A colored status indicator badge."""

    def __init__(self, state: JobState, parent=None):
        super().__init__(parent)
        self.set_state(state)

    def set_state(self, state: JobState, label: str = ""):
        status_map = {
            JobState.IDLE:       ("Idle",        "#666666"),
            JobState.RUNNING:    ("Running",     "#27ae60"),
            JobState.COMPLETING: ("Finishing…",  "#558B6E"),
            JobState.STOPPED:    ("Stopping…",   "#f39c12"),
            JobState.FAILED:     ("Error",       "#e74c3c"),
        }
        text, color = status_map.get(state, ("Unknown", "#888888"))
        self.setText(label or text)
        self.setStyleSheet(f"""
            QLabel {{
                background-color: {color};
                color: white;
                padding: 4px 12px;
                border-radius: 4px;
                font-size: 8pt;
                font-weight: 600;
            }}
        """)


def _action_button(label: str, color: str, hover: str) -> QPushButton:
    """Factory for the small action-bar buttons."""
    btn = QPushButton(label)
    btn.setFixedHeight(28)
    btn.setCursor(Qt.CursorShape.PointingHandCursor)
    btn.setStyleSheet(f"""
        QPushButton {{
            background-color: {color};
            color: white;
            border: none;
            border-radius: 5px;
            padding: 0 16px;
            font-size: 9pt;
            font-weight: 600;
        }}
        QPushButton:hover    {{ background-color: {hover}; }}
        QPushButton:disabled {{ background-color: #333; color: #777; }}
    """)
    return btn


class JobPanel(QFrame):
    """
    Shows the one active (or last) job: command, progress, outcome.

    Signals
    -------
    stop_requested()
    reveal_requested(str)   – output path of the finished job
    """

    stop_requested   = Signal()
    reveal_requested = Signal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._output = ""

        self.setObjectName("JobPanel")
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Fixed)
        self.setStyleSheet("""
            QFrame#JobPanel {
                background-color: #2a2a2a;
                border: 1px solid #3a3a3a;
                border-radius: 8px;
            }
        """)
        self._setup_ui()

    # ── UI construction ───────────────────────────────────────────────────────

    def _setup_ui(self):
        root = QVBoxLayout(self)
        root.setContentsMargins(14, 12, 14, 12)
        root.setSpacing(8)

        top_row = QHBoxLayout()
        top_row.setSpacing(12)

        info_col = QVBoxLayout()
        info_col.setSpacing(2)
        info_col.setContentsMargins(0, 0, 0, 0)

        self.title_label = QLabel("No job yet")
        self.title_label.setStyleSheet(
            "color: #e0e0e0; font-size: 11pt; font-weight: 600; background: transparent;"
        )
        info_col.addWidget(self.title_label)

        self.details_label = QLabel("Click  ＋ New Job  to get started.")
        self.details_label.setStyleSheet("color: #888; font-size: 8pt; background: transparent;")
        self.details_label.setWordWrap(True)
        self.details_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        info_col.addWidget(self.details_label)

        top_row.addLayout(info_col, 1)

        self.status_badge = StatusBadge(JobState.IDLE)
        top_row.addWidget(self.status_badge, 0, Qt.AlignmentFlag.AlignTop)
        root.addLayout(top_row)

        # ── Progress bar ──────────────────────────────────────────────────────
        self.progress_bar = QProgressBar()
        self.progress_bar.setStyleSheet("""
            QProgressBar {
                border: 1px solid #444;
                border-radius: 4px;
                background-color: #1a1a1a;
                text-align: center;
                height: 18px;
            }
            QProgressBar::chunk { background-color: #558B6E; }
        """)
        self.progress_bar.setRange(0, 100)
        self.progress_bar.setValue(0)
        self.progress_bar.setVisible(False)
        root.addWidget(self.progress_bar)

        self.stats_label = QLabel()
        self.stats_label.setStyleSheet("color: #999; font-size: 8pt; background: transparent;")
        self.stats_label.setVisible(False)
        root.addWidget(self.stats_label)

        self.error_label = QLabel()
        self.error_label.setStyleSheet("color: #e74c3c; font-size: 8pt; background: transparent;")
        self.error_label.setVisible(False)
        self.error_label.setWordWrap(True)
        root.addWidget(self.error_label)

        # ── Action bar ────────────────────────────────────────────────────────
        btn_row = QHBoxLayout()
        btn_row.setSpacing(8)

        self._stop_btn   = _action_button("■  Stop",        "#c0392b", "#e74c3c")
        self._reveal_btn = _action_button("📂  Show Output", "#444444", "#666666")
        self._stop_btn.clicked.connect(self.stop_requested.emit)
        self._reveal_btn.clicked.connect(lambda: self.reveal_requested.emit(self._output))
        self._stop_btn.setEnabled(False)
        self._reveal_btn.setEnabled(False)

        btn_row.addWidget(self._stop_btn)
        btn_row.addStretch()
        btn_row.addWidget(self._reveal_btn)
        root.addLayout(btn_row)

        self.setMinimumHeight(90)

    # ── Event handling (called by HomePage) ───────────────────────────────────

    def show_event(self, event) -> None:
        if isinstance(event, JobStarted):
            self._on_started(event)
        elif isinstance(event, JobProgress):
            self._on_progress(event)
        elif isinstance(event, JobCompleted):
            self._on_finished(JobState.IDLE, "Done")
            self._output = event.output
            self.details_label.setText(f"Saved to {event.output}")
            self.progress_bar.setValue(100)
            self._reveal_btn.setEnabled(True)
        elif isinstance(event, JobFailed):
            self._on_finished(JobState.FAILED, "Error")
            self.error_label.setText(f"Error: {event.reason}")
            self.error_label.setVisible(True)
        elif isinstance(event, JobStopped):
            self._on_finished(JobState.IDLE, "Stopped")

    def _on_started(self, event: JobStarted):
        self._output = ""
        self.title_label.setText(f"Job #{event.job_id}")
        self.details_label.setText(event.command)
        self.status_badge.set_state(JobState.RUNNING)
        self.progress_bar.setValue(0)
        self.progress_bar.setVisible(True)
        self.stats_label.setText("Starting…")
        self.stats_label.setVisible(True)
        self.error_label.setVisible(False)
        self._stop_btn.setEnabled(True)
        self._reveal_btn.setEnabled(False)

    def _on_progress(self, event: JobProgress):
        snap = event.snapshot
        self.progress_bar.setValue(int(snap.percent))
        self.stats_label.setText(
            f"{snap.percent:.0f}%  •  {snap.time}s processed  •  speed {snap.speed}  •  size {snap.eta}"
        )

    def _on_finished(self, state: JobState, label: str):
        self.status_badge.set_state(state, label)
        self.stats_label.setVisible(False)
        self._stop_btn.setEnabled(False)
        if state != JobState.IDLE:
            self.progress_bar.setVisible(False)
