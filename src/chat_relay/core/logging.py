"""Logging setup for the relay process."""

from __future__ import annotations

import logging

LOGGER_NAME = "chat_relay"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
HANDLER_NAME = "chat_relay.console"


def configure_logging(level: str | int = "info") -> logging.Logger:
    """Attach a console handler to the package logger.

    Calling this more than once only updates the level.

    Args:
        level: Level name (case-insensitive) or numeric logging level

    Returns:
        The configured package logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if not any(h.get_name() == HANDLER_NAME for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        handler.set_name(HANDLER_NAME)
        logger.addHandler(handler)
    return logger
