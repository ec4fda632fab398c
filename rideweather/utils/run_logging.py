"""
Logging setup for command-line analysis runs.

Library code only calls ``logging.getLogger(__name__)``; handlers are
attached here by the CLI.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rideweather.utils.env import log_level

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger; level defaults to RIDEWEATHER_LOG_LEVEL."""
    logging.basicConfig(
        level=getattr(logging, (level or log_level()).upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )


class AnalysisLogHandler:
    """
    Context manager that mirrors all log records of one analysis to a file.

    The handler is attached to the root logger on enter and removed on exit,
    with start/end markers written around the run.
    """

    def __init__(self, log_file: Path, label: str = "analysis"):
        self.log_file = Path(log_file)
        self.label = label
        self.file_handler: Optional[logging.FileHandler] = None
        self.root_logger = logging.getLogger()

    def __enter__(self):
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        self.file_handler = logging.FileHandler(self.log_file, mode='w', encoding='utf-8')
        self.file_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        self.file_handler.setLevel(self.root_logger.level or logging.INFO)
        self.root_logger.addHandler(self.file_handler)

        start_time = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
        self.root_logger.info(f"Analysis started: {self.label} at {start_time}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.file_handler is None:
            return
        try:
            if exc_type is None:
                self.root_logger.info(f"Analysis completed: {self.label}")
            else:
                self.root_logger.error(f"Analysis failed: {self.label} - {exc_type.__name__}: {exc_val}")
            self.file_handler.flush()
        finally:
            self.file_handler.close()
            self.root_logger.removeHandler(self.file_handler)
            self.file_handler = None
