"""
Entry point: ``ai-photo-edit [IMAGE]``.
"""

import logging
import os
import sys
from pathlib import Path

from ai_photo_edit import __version__

LOG_LEVEL_ENV_VAR = "AI_PHOTO_EDIT_LOG_LEVEL"


def configure_logging() -> None:
    level = getattr(logging, os.environ.get(LOG_LEVEL_ENV_VAR, "INFO").upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def main(argv: list[str] | None = None) -> int:
    """Start the editor, opening the image named on the command line if any."""
    if sys.version_info < (3, 11):
        print("Error: AI Photo Edit requires Python 3.11 or later")
        return 1

    argv = sys.argv if argv is None else argv
    configure_logging()

    # Qt is only needed once we know we are starting the GUI
    from PySide6.QtCore import Qt
    from PySide6.QtWidgets import QApplication

    from ai_photo_edit.core.ai_edit import AIEditAdapter
    from ai_photo_edit.core.session import EditSession
    from ai_photo_edit.core.settings import EditorSettings
    from ai_photo_edit.providers import get_registry
    from ai_photo_edit.ui.main_window import MainWindow

    get_registry().load_config()

    QApplication.setHighDpiScaleFactorRoundingPolicy(Qt.HighDpiScaleFactorRoundingPolicy.PassThrough)
    app = QApplication(argv)
    app.setApplicationName("AI Photo Edit")
    app.setOrganizationName("AI Photo Edit")
    app.setApplicationVersion(__version__)

    window = MainWindow(EditSession(
        adapter=AIEditAdapter.from_registry(),
        settings=EditorSettings.from_env(),
    ))
    window.show()
    if len(argv) > 1:
        window.open_path(Path(argv[1]))

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
