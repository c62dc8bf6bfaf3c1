"""
Structured Logger - File + Console with Daily Rotation

Provides a centralized logging facility for all modules.
Log format: [timestamp station-time] [level] [module] message
"""

import logging
import sys
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler

from config.settings import LOG_DIR, LOG_LEVEL, STATION_TZ


class StationTimeFormatter(logging.Formatter):
    """Formatter that renders record timestamps in the station timezone."""

    def formatTime(self, record, datefmt=None):
        ct = datetime.fromtimestamp(record.created, tz=STATION_TZ)
        if datefmt:
            return ct.strftime(datefmt)
        return ct.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]  # ms precision


def get_logger(name: str) -> logging.Logger:
    """
    Get or create a logger with the given name.

    Each logger gets:
    - Console handler (stdout)
    - File handler (daily rotation, kept 30 days)

    Args:
        name: Module name, e.g., 'synthesis.series_synthesizer'

    Returns:
        Configured logging.Logger instance
    """
    logger = logging.getLogger(name)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, LOG_LEVEL.upper(), logging.INFO))

    fmt = "[%(asctime)s] [%(levelname)-8s] [%(name)s] %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = StationTimeFormatter(fmt=fmt, datefmt=datefmt)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.DEBUG)
    logger.addHandler(console_handler)

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    log_file = LOG_DIR / "station_series.log"
    file_handler = TimedRotatingFileHandler(
        filename=str(log_file),
        when="midnight",
        interval=1,
        backupCount=30,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(logging.DEBUG)
    logger.addHandler(file_handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger
