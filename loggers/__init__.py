import logging
from logging import FileHandler, Formatter, Logger, StreamHandler
import os
from typing import Any

from src.main.config import config

LOG_DIR = os.getenv("LOG_DIR") or os.path.join(os.path.dirname(__file__), "..", "logs")
LOG_FILE = os.path.join(LOG_DIR, "auth.log")
AUDIT_LOG_FILE = os.path.join(LOG_DIR, "audit.log")

os.makedirs(LOG_DIR, exist_ok=True)

logging_format = "%(asctime)s [%(levelname)s]|[%(process)d]| %(name)s: %(message)s"
plain_logging_format = "%(asctime)s [%(process)d]| %(message)s"
audit_logging_format = "%(asctime)s [%(levelname)s] %(message)s"
time_logging_format = "%Y-%m-%d %H:%M:%S"

log_level = getattr(logging, config.app.LOG_LEVEL.upper(), logging.INFO)
file_log_level = getattr(logging, config.app.LOG_LEVEL_FILE.upper(), logging.WARNING)


def _file_handler(path: str, level: int, fmt: str) -> FileHandler:
    file_handler = logging.FileHandler(path, "a", "utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(Formatter(fmt, time_logging_format))
    return file_handler


def _stream_handler(fmt: str) -> StreamHandler:  # type: ignore
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(log_level)
    stream_handler.setFormatter(Formatter(fmt, time_logging_format))
    return stream_handler


def get_logger(name: Any, *, plain_format: bool = False) -> Logger:
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    logger.setLevel(log_level)

    if plain_format:
        logger.addHandler(_stream_handler(plain_logging_format))
    else:
        logger.addHandler(_file_handler(LOG_FILE, file_log_level, logging_format))
        logger.addHandler(_stream_handler(logging_format))

    logger.propagate = False
    return logger


def get_audit_logger(name: str = "auth.audit") -> Logger:
    """
    Logger for authentication audit trail lines.

    Everything from INFO up goes to a dedicated audit file regardless of
    ``LOG_LEVEL_FILE``, so logins and logouts are kept alongside incidents.
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    logger.addHandler(_file_handler(AUDIT_LOG_FILE, logging.INFO, audit_logging_format))
    logger.addHandler(_stream_handler(audit_logging_format))
    logger.propagate = False
    return logger
