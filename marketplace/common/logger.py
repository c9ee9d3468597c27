"""Logging setup for the marketplace service.

Components log through children of the ``marketplace`` logger, so the one
``setup_logger`` call made at startup decides where all of them write.
Decisions and transitions are logged at INFO, refused mutations at WARNING
and storage or identity-provider failures at ERROR.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER_NAME = "marketplace"

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
LOG_FILE_NAME = "marketplace.log"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5


def setup_logger(level: str = "INFO", *, log_dir: str = "logs", file_logging: bool = False) -> logging.Logger:
    """Configure the ``marketplace`` logger.

    Console output is always on; ``file_logging`` adds a rotating
    ``marketplace.log`` under ``log_dir``. Calling it again only changes the
    level.

    Raises:
        ValueError: If ``level`` is not a standard level name
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(numeric_level)
    if logger.handlers:
        return logger

    handlers = [logging.StreamHandler()]
    if file_logging:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(directory / LOG_FILE_NAME, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS)
        )

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def get_logger(component: str) -> logging.Logger:
    """Logger for one component, e.g. ``get_logger("approval")`` -> ``marketplace.approval``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")
