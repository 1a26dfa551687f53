from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_CONFIGURED = False


def setup_logging(
    level: str | int | None = None,
    log_file: str | None = None,
    max_bytes: int = 2 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """
    Configure the root logger once per process.

    - level: defaults to LOG_LEVEL (INFO when unset)
    - log_file: defaults to LOG_FILE; adds a rotating file handler when set
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    level = level or os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    log_file = log_file or os.getenv("LOG_FILE")

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if not root_logger.handlers:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        root_logger.addHandler(console)

    if log_file:
        handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    _CONFIGURED = True
