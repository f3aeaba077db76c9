"""Application entry point and setup for the Keystroke Trainer."""

import logging
import sys

from PySide6.QtWidgets import QApplication

from keytrainer.core.config import load_settings
from keytrainer.core.orchestrator import SessionOrchestrator
from keytrainer.core.patterns import PatternRepository
from keytrainer.core.stats import StatsAggregator, StatsStore
from keytrainer.ui.main_window import MainWindow, QtScheduler


def configure_logging(level: str = "INFO") -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def run() -> None:
    """Load patterns and stats, then open the trainer window."""
    settings = load_settings()
    configure_logging(settings.log_level)

    app = QApplication(sys.argv)
    app.setApplicationName("Keystroke Trainer")
    app.setApplicationDisplayName("Keystroke Trainer")

    patterns = PatternRepository(settings.patterns_file)
    stats = StatsAggregator(StatsStore(settings.stats_file))
    logging.info("Stats file: %s", settings.stats_file)

    orchestrator = SessionOrchestrator(
        patterns.all(),
        stats,
        scheduler=QtScheduler(app),
        advance_delay_ms=settings.advance_delay_ms,
    )
    window = MainWindow(orchestrator)
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    run()
