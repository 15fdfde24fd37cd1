# ui/dialogs/binary_setup.py

import logging
from pathlib import Path

from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QLabel, QProgressBar, QPushButton, QFileDialog
)
from PySide6.QtCore import Qt

from mediacore.downloader import BinaryDownloader

logger = logging.getLogger(__name__)

_BUTTON_STYLE = """
    QPushButton {{
        background-color: {color};
        color: white;
        border: none;
        border-radius: 5px;
        padding: 0 12px;
        font-size: 10pt;
    }}
    QPushButton:hover    {{ background-color: {hover}; }}
    QPushButton:disabled {{ background-color: #333; color: #777; }}
"""


class BinarySetupDialog(QDialog):
    """
    Shown at startup when ffmpeg/ffprobe cannot be resolved.

    The user either downloads static builds into bin/ (the dialog closes by
    itself on success), points at an existing ffmpeg folder, or carries on
    without; jobs then fail with an "ffmpeg not found" error.
    After accept(), chosen_folder is set when a folder was picked.
    """

    def __init__(self, problems: list[str], parent=None):
        super().__init__(parent)
        self.chosen_folder: Path | None = None
        self._downloader: BinaryDownloader | None = None

        self.setWindowTitle("ffmpeg is missing")
        self.setMinimumWidth(460)
        self.setWindowFlags(
            Qt.WindowType.Dialog | Qt.WindowType.CustomizeWindowHint |
            Qt.WindowType.WindowTitleHint
        )
        self.setStyleSheet("background-color: #1a1a1a; color: #e0e0e0;")

        layout = QVBoxLayout(self)
        layout.setContentsMargins(24, 24, 24, 24)
        layout.setSpacing(12)

        problems_lbl = QLabel("\n".join(problems))
        problems_lbl.setStyleSheet("font-size: 8pt; color: #777;")
        problems_lbl.setWordWrap(True)
        layout.addWidget(problems_lbl)

        self._status_lbl = QLabel("Clipwright needs ffmpeg and ffprobe to run jobs.")
        self._status_lbl.setStyleSheet("font-size: 10pt; color: #cccccc;")
        self._status_lbl.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._status_lbl.setWordWrap(True)
        layout.addWidget(self._status_lbl)

        self._bar = QProgressBar()
        self._bar.setRange(0, 100)
        self._bar.setTextVisible(True)
        self._bar.setVisible(False)
        self._bar.setStyleSheet("""
            QProgressBar {
                border: 1px solid #444;
                border-radius: 4px;
                background-color: #121212;
                text-align: center;
                height: 20px;
                font-size: 9pt;
            }
            QProgressBar::chunk { background-color: #558B6E; }
        """)
        layout.addWidget(self._bar)

        btn_row = QHBoxLayout()
        self._download_btn = QPushButton("Download")
        self._locate_btn   = QPushButton("Locate…")
        self._skip_btn     = QPushButton("Continue without ffmpeg")
        for btn, color, hover in (
            (self._download_btn, "#558B6E", "#67a382"),
            (self._locate_btn,   "#444444", "#666666"),
            (self._skip_btn,     "#444444", "#666666"),
        ):
            btn.setFixedHeight(32)
            btn.setStyleSheet(_BUTTON_STYLE.format(color=color, hover=hover))
            btn_row.addWidget(btn)
        layout.addLayout(btn_row)

        self._download_btn.clicked.connect(self._start_download)
        self._locate_btn.clicked.connect(self._locate)
        self._skip_btn.clicked.connect(self.reject)

    # ── Actions ───────────────────────────────────────────────────────────────

    def _start_download(self):
        self._set_busy(True)
        self._bar.setValue(0)
        self._bar.setVisible(True)
        self._status_lbl.setStyleSheet("font-size: 10pt; color: #cccccc;")
        self._status_lbl.setText("Preparing download…")

        self._downloader = BinaryDownloader(self)
        self._downloader.progress.connect(self._bar.setValue)
        self._downloader.status.connect(self._status_lbl.setText)
        self._downloader.done.connect(self._on_done)
        self._downloader.start()

    def _locate(self):
        folder = QFileDialog.getExistingDirectory(self, "Folder containing ffmpeg and ffprobe")
        if not folder:
            return
        logger.info("[SETUP] Using ffmpeg from %s", folder)
        self.chosen_folder = Path(folder)
        self.accept()

    def _on_done(self, success: bool):
        self._downloader.wait()
        self._downloader = None
        if success:
            self.accept()
            return
        self._status_lbl.setStyleSheet("font-size: 10pt; color: #e74c3c;")
        self._download_btn.setText("Retry")
        self._set_busy(False)

    def _set_busy(self, busy: bool):
        for btn in (self._download_btn, self._locate_btn, self._skip_btn):
            btn.setEnabled(not busy)
