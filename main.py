import logging
import sys
from PySide6.QtWidgets import QApplication
from PySide6.QtGui import QFont
from qt_material import apply_stylesheet

from mediacore.config import config_dir, load_settings
from mediacore.log import QtLogHandler, setup_logging
from ui import MainWindow

logger = logging.getLogger(__name__)


def main():
    app = QApplication(sys.argv)
    app.setApplicationName("Clipwright")

    # Base font
    font = QFont("Segoe UI", 10)
    app.setFont(font)

    apply_stylesheet(app, theme="dark_lightgreen.xml")

    settings = load_settings()

    # The UI console handler must exist before setup_logging so it is kept
    log_handler = QtLogHandler()
    logging.getLogger().addHandler(log_handler)
    log_file = setup_logging(settings.log_level, config_dir() / "logs")
    logger.info("[APP] Starting, logging to %s", log_file)

    window = MainWindow(settings, log_handler)
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
