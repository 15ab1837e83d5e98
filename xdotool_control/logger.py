"""Logging helpers. Records go to stderr; stdout carries the MCP stdio channel."""

import logging
import sys
from typing import Optional, Union

_LOGGER_NAME = "xdotool_control"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the package logger, or a child logger when name is given."""
    if name:
        return logging.getLogger(f"{_LOGGER_NAME}.{name}")
    return logging.getLogger(_LOGGER_NAME)


def setup_logging(
    level: Union[int, str] = logging.INFO,
    format_str: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
) -> None:
    """Attach a stderr handler to the package logger.

    Called once by the server entry point. Repeated calls only update the level.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)

    if any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(format_str))
    logger.addHandler(handler)


logging.getLogger(_LOGGER_NAME).addHandler(logging.NullHandler())
