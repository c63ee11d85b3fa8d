"""Logging helpers for acornget.

All output is unstructured, human-readable lines prefixed with the level:
``[INFO]`` lines go to stdout, ``[WARN]`` and ``[ERROR]`` lines to stderr.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

ROOT_LOGGER_NAME = "acornget"

_LEVEL_TAGS = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "ERROR",
}

_HANDLER_TAG = "_acornget_handler"


class LevelTagFormatter(logging.Formatter):
    """Format records as ``[TAG]  message``."""

    def format(self, record: logging.LogRecord) -> str:
        tag = _LEVEL_TAGS.get(record.levelno, record.levelname)
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return f"[{tag}]  {message}"


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int) -> None:
        super().__init__()
        self._max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self._max_level


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the acornget namespace."""
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(
    *,
    debug: bool = False,
    quiet: bool = False,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> None:
    """Configure the acornget logger.

    Safe to call repeatedly; handlers installed by a previous call are
    replaced rather than duplicated.

    Args:
        debug: Emit ``[DEBUG]`` lines as well.
        quiet: Only emit warnings and errors.
        stdout: Stream for info and debug lines (default: sys.stdout).
        stderr: Stream for warnings and errors (default: sys.stderr).
    """
    if debug:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            logger.removeHandler(handler)

    formatter = LevelTagFormatter()

    out_handler = logging.StreamHandler(stdout or sys.stdout)
    out_handler.setLevel(level)
    out_handler.addFilter(_MaxLevelFilter(logging.INFO))
    out_handler.setFormatter(formatter)
    setattr(out_handler, _HANDLER_TAG, True)

    err_handler = logging.StreamHandler(stderr or sys.stderr)
    err_handler.setLevel(max(level, logging.WARNING))
    err_handler.setFormatter(formatter)
    setattr(err_handler, _HANDLER_TAG, True)

    logger.addHandler(out_handler)
    logger.addHandler(err_handler)
    logger.setLevel(level)
    logger.propagate = False
