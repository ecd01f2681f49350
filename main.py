"""
Study Focus — subject / chapter / topic study tracker.
Entry point for the application.
"""

import faulthandler
import logging
import sys
from pathlib import Path

faulthandler.enable()

# Ensure studyfocus is importable
sys.path.insert(0, str(Path(__file__).resolve().parent))

from PySide6.QtWidgets import QApplication

from studyfocus.config import load_config
from studyfocus.data.database import Database
from studyfocus.data.repository import Repository
from studyfocus.services.study_context import StudyContext
from studyfocus.services.tracking_service import TickScheduler
from studyfocus.ui.main_window import MainWindow
from studyfocus.ui.styles import DARK_STYLESHEET


def setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler("study_focus.log", encoding="utf-8"),
        ],
    )


def main() -> None:
    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info("Starting Study Focus...")

    config = load_config()

    app = QApplication(sys.argv)
    app.setApplicationName("Study Focus")
    app.setOrganizationName("StudyFocus")
    app.setStyleSheet(DARK_STYLESHEET)

    db = Database(Path(config["db_path"]))
    db.connect()
    repo = Repository(db.conn)

    # QTimer needs the QApplication, so the scheduler is built after it.
    scheduler = TickScheduler(int(config["tick_interval_ms"]))
    context = StudyContext.from_config(config, repo, scheduler=scheduler)
    context.load()

    window = MainWindow(context, config)
    window.show()

    logger.info("Application started.")
    code = app.exec()

    context.shutdown()  # no-op if the window already did it
    db.close()
    sys.exit(code)


if __name__ == "__main__":
    main()


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   The entry point. Sets up logging, loads config, opens SQLite, builds the
#   StudyContext (ledger + timer + storage + stats), restores the saved
#   snapshot and opens MainWindow.
#
# Key points:
#   - Everything is constructed here and passed down. No module creates its
#     own database connection or reaches for a global.
#   - context.load() runs before the window appears, so the first paint
#     already shows the saved subjects and a resumed timer.
#   - Shutdown order: context first (final checkpoint, drain the writer
#     thread), then the database connection.
#
# Interviewer-friendly talking points:
#   1. The event loop is the heartbeat of GUI apps. The tick timer, button
#      clicks and repaints are all processed by app.exec().
#   2. Logging to both console and file: console for development, file
#      for debugging user-reported issues.
