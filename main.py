"""
main.py – VR Catalog application entry point.
Configures logging, bootstraps the PySide6 QApplication and launches the main window.
"""

import logging
import os
import sys

# ── PyInstaller binary path resolution ──────────────────────────────────────
if hasattr(sys, "_MEIPASS"):
    BASE_PATH = sys._MEIPASS
else:
    BASE_PATH = os.path.abspath(".")

# Expose globally so services can resolve the bundled data directory
os.environ.setdefault("VRCATALOG_BASE", BASE_PATH)

from PySide6.QtCore import Qt  # noqa: E402
from PySide6.QtWidgets import QApplication  # noqa: E402

from main_window import MainWindow  # noqa: E402


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("VRCATALOG_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication(sys.argv)
    app.setApplicationName("VR Catalog")
    app.setApplicationDisplayName("VR Каталог")
    app.setOrganizationName("VR Catalog")

    window = MainWindow()
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
