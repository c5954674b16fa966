"""Centralized logging for the Medication Adherence Tracker.

Each component writes to its own rotating file under LOG_DIR and to the
console. Level and directory come from settings.
"""

import logging
from logging.handlers import RotatingFileHandler
import os

from config import settings

LOG_DIR = settings.LOG_DIR or os.path.join(os.path.dirname(os.path.abspath(__file__)), 'logs')
os.makedirs(LOG_DIR, exist_ok=True)

LOG_FORMAT = '[%(asctime)s] %(levelname)s - %(message)s'


def setup_logger(name: str, log_file: str = 'tracker.log') -> logging.Logger:
    """Get a logger writing to log_file and the console.

    Args:
        name: Logger name (usually __name__)
        log_file: File name under LOG_DIR (e.g., 'registry.log')

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Already configured by an earlier import
    if logger.handlers:
        return logger

    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logger.setLevel(level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    # 5 backups of 10MB each
    file_handler = RotatingFileHandler(
        os.path.join(LOG_DIR, log_file),
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding='utf-8'
    )
    console_handler = logging.StreamHandler()

    for handler in (file_handler, console_handler):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def configure_root_logger():
    """Keep web server, ORM and HTTP client logs at WARNING."""
    for noisy in ('uvicorn', 'uvicorn.access', 'fastapi', 'sqlalchemy', 'httpx'):
        logging.getLogger(noisy).setLevel(logging.WARNING)


configure_root_logger()
