# ui/dialogs/new_job.py

from pathlib import Path
from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QFormLayout, QLineEdit,
    QPushButton, QFileDialog, QDoubleSpinBox, QComboBox, QListWidget,
    QLabel, QDialogButtonBox, QMessageBox
)
from PySide6.QtCore import Signal

from mediacore.config import Settings
from mediacore.models import JobRequest, Operation
from mediacore.presets import OPERATION_PRESETS, OperationPreset

VIDEO_FILTER = "Video files (*.mp4 *.avi *.mov *.mkv *.webm *.flv *.wmv *.m4v *.mpg *.mpeg);;All files (*)"


class NewJobDialog(QDialog):
    """
    Collects one JobRequest. Emits input_chosen(str) whenever the first
    input changes so the main window can probe it for the details panel.
    """

    input_chosen = Signal(str)

    def __init__(self, settings: Settings, parent=None, initial_input: str = ""):
        super().__init__(parent)
        self.setWindowTitle("New Job")
        self.setMinimumWidth(480)
        self.setStyleSheet("background-color: #1a1a1a; color: #e0e0e0;")
        self._settings = settings

        self._build_ui()
        self._populate_operations()
        self._wire_signals()

        if initial_input:
            self._set_inputs([initial_input])

    # ── UI construction ───────────────────────────────────────────────────────

    def _build_ui(self):
        layout = QVBoxLayout(self)
        form = QFormLayout()

        self.operation_combo = QComboBox()
        form.addRow("Operation:", self.operation_combo)

        in_layout = QHBoxLayout()
        self.inputs_list = QListWidget()
        self.inputs_list.setFixedHeight(72)
        in_btn = QPushButton("Browse...")
        in_btn.clicked.connect(self._browse_inputs)
        in_layout.addWidget(self.inputs_list, 1)
        in_layout.addWidget(in_btn)
        form.addRow("Input:", in_layout)

        out_layout = QHBoxLayout()
        self.output_edit = QLineEdit()
        self.output_edit.setPlaceholderText("Output file")
        out_btn = QPushButton("Browse...")
        out_btn.clicked.connect(self._browse_output)
        out_layout.addWidget(self.output_edit, 1)
        out_layout.addWidget(out_btn)
        form.addRow("Output:", out_layout)

        form.addRow(QLabel("──────────────────────────────────"))

        self.format_combo = QComboBox()
        form.addRow("Format:", self.format_combo)

        self.quality_combo = QComboBox()
        form.addRow("Quality:", self.quality_combo)

        self.resolution_edit = QLineEdit()
        self.resolution_edit.setPlaceholderText("source (e.g. 1280x720)")
        form.addRow("Resolution:", self.resolution_edit)

        self.fps_spin = QDoubleSpinBox()
        self.fps_spin.setRange(0, 240)
        self.fps_spin.setDecimals(2)
        self.fps_spin.setSpecialValueText("source")
        form.addRow("Frame rate:", self.fps_spin)

        self.offset_spin = QDoubleSpinBox()
        self.offset_spin.setRange(0, 24 * 3600)
        self.offset_spin.setSuffix(" s")
        self.offset_spin.setValue(self._settings.thumbnail_offset)
        form.addRow("Time offset:", self.offset_spin)

        self._form = form
        layout.addLayout(form)

        self.buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        self.buttons.accepted.connect(self._accept_if_valid)
        self.buttons.rejected.connect(self.reject)
        layout.addWidget(self.buttons)

    def _populate_operations(self):
        for preset in OPERATION_PRESETS:
            self.operation_combo.addItem(preset.display_name, userData=preset)
        self._on_operation_changed()

    def _wire_signals(self):
        self.operation_combo.currentIndexChanged.connect(self._on_operation_changed)
        self.format_combo.currentTextChanged.connect(self._on_format_changed)

    def _on_operation_changed(self):
        preset: OperationPreset = self.operation_combo.currentData()

        self.format_combo.clear()
        self.format_combo.addItems(preset.formats)
        default = preset.default_format
        if preset.operation == Operation.EXTRACT_AUDIO:
            default = self._settings.default_audio_format
        self.format_combo.setCurrentText(default)

        self.quality_combo.clear()
        self.quality_combo.addItems(preset.qualities)
        self.quality_combo.setCurrentText(self._settings.default_quality)

        for widget, visible in (
            (self.quality_combo,   preset.uses_quality),
            (self.resolution_edit, preset.uses_overrides),
            (self.fps_spin,        preset.uses_overrides and preset.operation != Operation.THUMBNAIL),
            (self.offset_spin,     preset.uses_offset),
        ):
            self._form.setRowVisible(widget, visible)

        if not preset.multi_input and self.inputs_list.count() > 1:
            self._set_inputs([self.inputs_list.item(0).text()])
        self._suggest_output()

    def _on_format_changed(self, fmt: str):
        if fmt:
            self._suggest_output()

    # ── Browse helpers ────────────────────────────────────────────────────────

    def _browse_inputs(self):
        preset: OperationPreset = self.operation_combo.currentData()
        if preset.multi_input:
            paths, _ = QFileDialog.getOpenFileNames(self, "Select Videos", "", VIDEO_FILTER)
        else:
            path, _ = QFileDialog.getOpenFileName(self, "Select Video", "", VIDEO_FILTER)
            paths = [path] if path else []
        if paths:
            self._set_inputs(paths)

    def _browse_output(self):
        path, _ = QFileDialog.getSaveFileName(
            self, "Save Output As", self.output_edit.text(),
            f"{self.format_combo.currentText().upper()} (*.{self.format_combo.currentText()})",
        )
        if path:
            self.output_edit.setText(path)

    def _set_inputs(self, paths: list[str]):
        self.inputs_list.clear()
        self.inputs_list.addItems(paths)
        self._suggest_output()
        self.input_chosen.emit(paths[0])

    def _suggest_output(self):
        """Propose <stem>_<operation>.<format> next to the input (or in the output dir)."""
        if self.inputs_list.count() == 0:
            return
        preset: OperationPreset = self.operation_combo.currentData()
        first = Path(self.inputs_list.item(0).text())
        folder = Path(self._settings.output_dir) if self._settings.output_dir else first.parent
        suffix = preset.operation.value.replace("-", "_")
        self.output_edit.setText(
            str(folder / f"{first.stem}_{suffix}.{self.format_combo.currentText()}")
        )

    # ── Result ────────────────────────────────────────────────────────────────

    def _accept_if_valid(self):
        if self.inputs_list.count() == 0:
            QMessageBox.warning(self, "New Job", "Choose at least one input file.")
            return
        if not self.output_edit.text().strip():
            QMessageBox.warning(self, "New Job", "Choose an output file.")
            return
        self.accept()

    def get_request(self) -> JobRequest:
        preset: OperationPreset = self.operation_combo.currentData()
        inputs = [self.inputs_list.item(i).text() for i in range(self.inputs_list.count())]
        fmt = self.format_combo.currentText()

        options = {}
        if preset.operation == Operation.EXTRACT_AUDIO:
            options["audio_format"] = fmt
        elif preset.operation != Operation.THUMBNAIL:
            options["format"] = fmt
        if preset.uses_quality:
            options["quality"] = self.quality_combo.currentText()
        if preset.uses_overrides:
            options["resolution"] = self.resolution_edit.text().strip() or None
            if self.fps_spin.value() > 0 and preset.operation != Operation.THUMBNAIL:
                options["fps"] = self.fps_spin.value()
        if preset.uses_offset:
            options["time_offset"] = self.offset_spin.value()

        return JobRequest.create(
            preset.operation,
            inputs,
            self.output_edit.text().strip(),
            **options,
        )
