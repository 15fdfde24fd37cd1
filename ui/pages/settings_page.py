from dataclasses import replace

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QFormLayout,
    QLineEdit, QComboBox, QDoubleSpinBox, QCheckBox, QFileDialog
)
from PySide6.QtCore import Qt, Signal

from mediacore.config import Settings, save_settings
from mediacore.models import AUDIO_FORMATS, Quality


class SettingsPage(QWidget):
    """Application settings page."""

    settings_changed = Signal(object)   # Settings

    def __init__(self, switch_callback, settings: Settings, parent=None):
        super().__init__(parent)
        self.switch_callback = switch_callback
        self._settings = settings

        root = QVBoxLayout(self)
        root.setContentsMargins(0, 0, 0, 0)
        root.setSpacing(0)

        # ── Page header bar ───────────────────────────────────────────────────
        header_bar = QWidget()
        header_bar.setFixedHeight(56)
        header_bar.setStyleSheet("background-color: #1e1e1e; border-bottom: 1px solid #333;")
        header_layout = QHBoxLayout(header_bar)
        header_layout.setContentsMargins(16, 0, 16, 0)

        back_btn = QPushButton("← Back")
        back_btn.setFixedHeight(32)
        back_btn.setCursor(Qt.PointingHandCursor)
        back_btn.setStyleSheet("""
            QPushButton {
                background-color: transparent;
                color: #aaaaaa;
                border: 1px solid #444;
                border-radius: 6px;
                padding: 0 12px;
                font-size: 10pt;
            }
            QPushButton:hover { color: #e0e0e0; border-color: #666; }
        """)
        back_btn.clicked.connect(lambda: switch_callback("home"))
        header_layout.addWidget(back_btn)

        page_title = QLabel("Settings")
        page_title.setAlignment(Qt.AlignCenter)
        page_title.setStyleSheet("color: #e0e0e0; font-size: 14pt; font-weight: 700;")
        header_layout.addWidget(page_title)
        header_layout.addStretch()

        save_btn = QPushButton("Save")
        save_btn.setFixedHeight(32)
        save_btn.setStyleSheet("""
            QPushButton {
                background-color: #558B6E;
                color: white;
                border: none;
                border-radius: 6px;
                padding: 0 14px;
                font-size: 10pt;
                font-weight: 600;
            }
            QPushButton:hover { background-color: #67a382; }
        """)
        save_btn.clicked.connect(self._save)
        header_layout.addWidget(save_btn)

        root.addWidget(header_bar)

        # ── Form ──────────────────────────────────────────────────────────────
        content = QWidget()
        content.setStyleSheet("background-color: #121212; color: #e0e0e0;")
        form = QFormLayout(content)
        form.setContentsMargins(32, 24, 32, 24)
        form.setSpacing(12)

        self.ffmpeg_edit  = self._path_row(form, "ffmpeg binary:", settings.ffmpeg_path, file=True)
        self.ffprobe_edit = self._path_row(form, "ffprobe binary:", settings.ffprobe_path, file=True)
        self.output_edit  = self._path_row(form, "Default output folder:", settings.output_dir)

        self.quality_combo = QComboBox()
        self.quality_combo.addItems([q.value for q in Quality])
        self.quality_combo.setCurrentText(settings.default_quality)
        form.addRow("Default quality:", self.quality_combo)

        self.audio_combo = QComboBox()
        self.audio_combo.addItems(AUDIO_FORMATS)
        self.audio_combo.setCurrentText(settings.default_audio_format)
        form.addRow("Default audio format:", self.audio_combo)

        self.offset_spin = QDoubleSpinBox()
        self.offset_spin.setRange(0, 24 * 3600)
        self.offset_spin.setSuffix(" s")
        self.offset_spin.setValue(settings.thumbnail_offset)
        form.addRow("Thumbnail offset:", self.offset_spin)

        self.log_combo = QComboBox()
        self.log_combo.addItems(["DEBUG", "INFO", "WARNING", "ERROR"])
        self.log_combo.setCurrentText(settings.log_level)
        form.addRow("Log level:", self.log_combo)

        self.notify_check = QCheckBox("Show a desktop notification when a job ends")
        self.notify_check.setChecked(settings.notifications)
        form.addRow("", self.notify_check)

        hint = QLabel("Binary changes apply from the next job. Leave empty to use the bundled or system ffmpeg.")
        hint.setStyleSheet("color: #555; font-size: 8pt;")
        hint.setWordWrap(True)
        form.addRow("", hint)

        root.addWidget(content, 1)

    def _path_row(self, form: QFormLayout, label: str, value: str, file: bool = False) -> QLineEdit:
        row = QHBoxLayout()
        edit = QLineEdit(value)
        browse = QPushButton("Browse...")

        def pick():
            if file:
                path, _ = QFileDialog.getOpenFileName(self, label.rstrip(":"))
            else:
                path = QFileDialog.getExistingDirectory(self, label.rstrip(":"))
            if path:
                edit.setText(path)

        browse.clicked.connect(pick)
        row.addWidget(edit, 1)
        row.addWidget(browse)
        form.addRow(label, row)
        return edit

    def _save(self):
        updated = replace(
            self._settings,
            ffmpeg_path=self.ffmpeg_edit.text().strip(),
            ffprobe_path=self.ffprobe_edit.text().strip(),
            output_dir=self.output_edit.text().strip(),
            default_quality=self.quality_combo.currentText(),
            default_audio_format=self.audio_combo.currentText(),
            thumbnail_offset=self.offset_spin.value(),
            log_level=self.log_combo.currentText(),
            notifications=self.notify_check.isChecked(),
        )
        save_settings(updated)
        self._settings = updated
        self.settings_changed.emit(updated)
        self.switch_callback("home")
