"""Logging setup for the smarthooks CLI.

Diagnostics go through the ``smarthooks`` logger hierarchy to stderr, with a
bracketed level prefix in the style of the hook scripts this tool replaces.
"""

import logging
import sys
from typing import TextIO

LOGGER_NAME = "smarthooks"

COLORS = {
    logging.DEBUG: "\033[0;36m",  # Cyan
    logging.INFO: "\033[0;34m",  # Blue
    logging.WARNING: "\033[0;33m",  # Yellow
    logging.ERROR: "\033[0;31m",  # Red
}
RESET = "\033[0m"

LABELS = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
}


class PrefixFormatter(logging.Formatter):
    """Format records as ``[LEVEL] message``."""

    def __init__(self, use_color: bool = False):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        label = LABELS.get(record.levelno, record.levelname)
        message = record.getMessage()
        if self.use_color:
            color = COLORS.get(record.levelno, "")
            return f"{color}[{label}]{RESET} {message}"
        return f"[{label}] {message}"


def configure_logging(debug: bool = False, stream: TextIO | None = None) -> logging.Logger:
    """Attach a single stderr handler to the package logger."""
    stream = stream if stream is not None else sys.stderr
    logger = logging.getLogger(LOGGER_NAME)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    use_color = hasattr(stream, "isatty") and stream.isatty()
    handler.setFormatter(PrefixFormatter(use_color=use_color))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False
    return logger
