"""
Logging setup
Console output plus daily app/error log files
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from dcc_sfa.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# third-party loggers that only matter when something goes wrong
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "apscheduler", "multipart")

LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}
RESET = "\033[0m"


class ColoredFormatter(logging.Formatter):
    """Console formatter with ANSI level colours"""

    def format(self, record):
        # the record is shared with the file handlers
        record = logging.makeLogRecord(record.__dict__)
        color = LEVEL_COLORS.get(record.levelno, RESET)
        record.levelname = f"{color}{record.levelname}{RESET}"
        return super().format(record)


def _daily_file_handler(log_dir: Path, prefix: str, level: int) -> logging.Handler:
    stamp = datetime.now().strftime("%Y-%m-%d")
    handler = logging.FileHandler(log_dir / f"{prefix}_{stamp}.log", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    return handler


def setup_logging(log_level: str = "INFO", log_dir: str = None):
    """
    Configure the root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_dir: where app_*.log and error_*.log go, settings.LOG_DIR by default
    """
    log_path = Path(log_dir or settings.LOG_DIR)
    log_path.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT))
    root.addHandler(console)
    root.addHandler(_daily_file_handler(log_path, "app", logging.INFO))
    root.addHandler(_daily_file_handler(log_path, "error", logging.ERROR))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(f"📋 Logging initialised ({log_level.upper()}, files in {log_path})")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
