import logging
from pathlib import Path

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QHBoxLayout, QVBoxLayout,
    QLabel, QStackedWidget, QSizePolicy, QDialog
)
from PySide6.QtCore import Qt

from mediacore.bridge import EventBridge
from mediacore.config import Settings, save_settings
from mediacore.log import QtLogHandler
from mediacore.models import MediaInfo
from mediacore.paths import (
    FFMPEG_BIN, FFPROBE_BIN, resolve_ffmpeg, resolve_ffprobe, validate_binaries,
)
from mediacore.supervisor import JobSupervisor
from ui.dialogs.binary_setup import BinarySetupDialog
from ui.pages import HomePage, SettingsPage


class _Row(QWidget):
    """A label/value pair for the details panel."""

    def __init__(self, label: str, parent=None):
        super().__init__(parent)
        self.setStyleSheet("background: transparent;")
        col = QVBoxLayout(self)
        col.setContentsMargins(0, 0, 0, 0)
        col.setSpacing(1)

        lbl = QLabel(label.upper())
        lbl.setStyleSheet("color: #555; font-size: 8pt; font-weight: 700; letter-spacing: 1px;")
        col.addWidget(lbl)

        self.value = QLabel("—")
        self.value.setStyleSheet("color: #cccccc; font-size: 11pt;")
        self.value.setWordWrap(True)
        col.addWidget(self.value)

    def set(self, text: str):
        self.value.setText(text or "—")


def _format_duration(seconds: float) -> str:
    total = int(seconds)
    h, rem = divmod(total, 3600)
    m, s = divmod(rem, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


class _SidePanel(QWidget):
    """Right-hand details panel: media info of the input picked in the New Job dialog."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setStyleSheet("background-color: #1a1a1a;")
        self.setSizePolicy(QSizePolicy.Policy.Fixed, QSizePolicy.Policy.Expanding)

        root = QVBoxLayout(self)
        root.setContentsMargins(0, 16, 0, 16)
        root.setSpacing(0)

        # ── Header ────────────────────────────────────────────────────────────
        title = QLabel("MEDIA INFO")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        title.setStyleSheet(
            "color: #666; font-size: 8pt; font-weight: 700; letter-spacing: 2px;"
        )
        root.addWidget(title)

        sep = QWidget()
        sep.setFixedHeight(1)
        sep.setStyleSheet("background-color: #2e2e2e; margin-top: 8px; margin-bottom: 12px;")
        root.addWidget(sep)

        # ── Stacked: placeholder vs content ───────────────────────────────────
        self._stack = QStackedWidget()
        root.addWidget(self._stack, 1)

        # Page 0 — placeholder
        self._placeholder = QLabel("Pick an input file\nto see its details.")
        self._placeholder.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._placeholder.setWordWrap(True)
        self._placeholder.setStyleSheet("color: #444; font-size: 9pt;")
        self._stack.addWidget(self._placeholder)

        # Page 1 — media details
        content = QWidget()
        content.setStyleSheet("background: transparent;")
        col = QVBoxLayout(content)
        col.setContentsMargins(16, 0, 16, 0)
        col.setSpacing(14)

        col.addStretch()

        self._r_file       = _Row("File")
        self._r_duration   = _Row("Duration")
        self._r_size       = _Row("Size")
        self._r_bitrate    = _Row("Bitrate")
        self._r_codec      = _Row("Video Codec")
        self._r_resolution = _Row("Resolution")
        self._r_fps        = _Row("Frame Rate")

        for row in (
            self._r_file, self._r_duration, self._r_size, self._r_bitrate,
            self._r_codec, self._r_resolution, self._r_fps,
        ):
            col.addWidget(row)

            sep = QWidget()
            sep.setFixedHeight(1)
            sep.setStyleSheet("background-color: #2e2e2e;")
            col.addWidget(sep)

        col.addStretch()
        self._stack.addWidget(content)

    # ── Public API ────────────────────────────────────────────────────────────

    def show_info(self, path: str, info: MediaInfo) -> None:
        """Populate the panel with the probed file's data."""
        try:
            kbps = f"{int(info.bitrate) // 1000} kb/s"
        except ValueError:
            kbps = info.bitrate

        self._r_file.set(Path(path).name)
        self._r_duration.set(_format_duration(info.duration))
        self._r_size.set(info.size)
        self._r_bitrate.set(kbps)
        self._r_codec.set(info.codec)
        self._r_resolution.set(info.resolution)
        self._r_fps.set(f"{info.fps:g} fps")

        self._stack.setCurrentIndex(1)

    def show_error(self, path: str, kind: str, message: str) -> None:
        self._placeholder.setText(f"{Path(path).name}\n\n{kind}: {message}")
        self._stack.setCurrentIndex(0)

    def clear(self) -> None:
        """Go back to the placeholder."""
        self._placeholder.setText("Pick an input file\nto see its details.")
        self._stack.setCurrentIndex(0)


# ── Main Window ───────────────────────────────────────────────────────────────

class MainWindow(QMainWindow):
    """Top-level application window."""

    def __init__(self, settings: Settings, log_handler: QtLogHandler):
        super().__init__()
        self.settings = settings

        ffmpeg  = resolve_ffmpeg(settings.ffmpeg_path)
        ffprobe = resolve_ffprobe(settings.ffprobe_path)

        # ── Binary check — must happen before anything else ───────────────────
        problems = validate_binaries(ffmpeg, ffprobe)
        if problems:
            dialog = BinarySetupDialog(problems, self)
            if dialog.exec() == QDialog.DialogCode.Accepted:
                if dialog.chosen_folder is not None:
                    settings.ffmpeg_path  = str(dialog.chosen_folder / FFMPEG_BIN.name)
                    settings.ffprobe_path = str(dialog.chosen_folder / FFPROBE_BIN.name)
                    save_settings(settings)
                # Either the picked folder or a fresh download into bin/
                ffmpeg  = resolve_ffmpeg(settings.ffmpeg_path)
                ffprobe = resolve_ffprobe(settings.ffprobe_path)
            # Otherwise open anyway; ffmpeg errors will surface when jobs run.

        self.supervisor = JobSupervisor(ffmpeg, ffprobe, self)
        self.bridge = EventBridge(self.supervisor, self)

        self.setWindowTitle("Clipwright")
        self.resize(1000, 620)
        self.setMinimumSize(700, 400)
        self.setStyleSheet("background-color: #121212;")
        self.setContentsMargins(0, 0, 0, 0)

        central = QWidget()
        self.setCentralWidget(central)

        outer = QHBoxLayout(central)
        outer.setContentsMargins(0, 0, 0, 0)
        outer.setSpacing(0)

        self._stack = QStackedWidget()
        self._home_page = HomePage(self._switch_page, self.bridge, settings, log_handler)
        self._settings_page = SettingsPage(self._switch_page, settings)
        self._stack.addWidget(self._home_page)
        self._stack.addWidget(self._settings_page)
        self._stack.setCurrentWidget(self._home_page)

        self._side_panel = _SidePanel()
        self._side_panel.setFixedWidth(280)

        separator = QWidget()
        separator.setFixedWidth(1)
        separator.setStyleSheet("background-color: #2e2e2e;")

        outer.addWidget(self._stack, 1)
        outer.addWidget(separator)
        outer.addWidget(self._side_panel)

        # ── Wire media info panel signals ─────────────────────────────────────
        self._home_page.probe_requested.connect(self._on_probe_requested)
        self.supervisor.probe_finished.connect(self._side_panel.show_info)
        self.supervisor.probe_failed.connect(self._side_panel.show_error)
        self._settings_page.settings_changed.connect(self._on_settings_changed)

    def _on_probe_requested(self, path: str) -> None:
        self._side_panel.clear()
        self.supervisor.probe_async(path)

    def _on_settings_changed(self, settings: Settings) -> None:
        self.settings = settings
        self._home_page.settings = settings
        logging.getLogger().setLevel(settings.log_level)
        self.supervisor.set_binaries(
            resolve_ffmpeg(settings.ffmpeg_path),
            resolve_ffprobe(settings.ffprobe_path),
        )

    def _switch_page(self, page_name: str):
        pages = {
            "home":     self._home_page,
            "settings": self._settings_page,
        }
        widget = pages.get(page_name)
        if widget:
            self._stack.setCurrentWidget(widget)

    def closeEvent(self, event):
        # Never leave an ffmpeg process behind
        self.supervisor.stop()
        super().closeEvent(event)
