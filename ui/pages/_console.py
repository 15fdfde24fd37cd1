from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPlainTextEdit, QPushButton
)
from PySide6.QtGui import QColor, QTextCharFormat

from mediacore.log import QtLogHandler

_LEVEL_COLORS = {
    "DEBUG":    "#777777",
    "INFO":     "#cccccc",
    "WARNING":  "#f39c12",
    "ERROR":    "#e74c3c",
    "CRITICAL": "#e74c3c",
}


class DebugConsole(QWidget):
    """Collapsible read-only view of the application log."""

    def __init__(self, handler: QtLogHandler, parent=None):
        super().__init__(parent)
        self.setStyleSheet("background: transparent;")

        col = QVBoxLayout(self)
        col.setContentsMargins(0, 0, 0, 0)
        col.setSpacing(4)

        header = QHBoxLayout()
        title = QLabel("CONSOLE")
        title.setStyleSheet("color: #555; font-size: 8pt; font-weight: 700; letter-spacing: 1px;")
        header.addWidget(title)
        header.addStretch()

        self._toggle_btn = QPushButton("Hide")
        self._toggle_btn.setFlat(True)
        self._toggle_btn.setStyleSheet("color: #888; font-size: 8pt;")
        self._toggle_btn.clicked.connect(self._toggle)
        clear_btn = QPushButton("Clear")
        clear_btn.setFlat(True)
        clear_btn.setStyleSheet("color: #888; font-size: 8pt;")
        header.addWidget(self._toggle_btn)
        header.addWidget(clear_btn)
        col.addLayout(header)

        self.log_view = QPlainTextEdit()
        self.log_view.setReadOnly(True)
        self.log_view.setMinimumHeight(110)
        self.log_view.setMaximumBlockCount(5000)
        self.log_view.setStyleSheet(
            "background-color: #0e0e0e; color: #cccccc; border: 1px solid #2e2e2e;"
            "font-family: monospace; font-size: 8pt;"
        )
        col.addWidget(self.log_view)
        clear_btn.clicked.connect(self.log_view.clear)

        handler.record_emitted.connect(self.append)

    def append(self, level: str, line: str) -> None:
        fmt = QTextCharFormat()
        fmt.setForeground(QColor(_LEVEL_COLORS.get(level, "#cccccc")))
        cursor = self.log_view.textCursor()
        cursor.movePosition(cursor.MoveOperation.End)
        if not self.log_view.document().isEmpty():
            cursor.insertBlock()
        cursor.insertText(line, fmt)
        self.log_view.ensureCursorVisible()

    def _toggle(self):
        visible = not self.log_view.isVisible()
        self.log_view.setVisible(visible)
        self._toggle_btn.setText("Hide" if visible else "Show")
