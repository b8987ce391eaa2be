"""
Logging for the forge installer and launcher.

Status lines go to stdout; warnings and errors go to stderr so that
diagnostics from a failed install end up on the error stream.
"""

import logging
import sys
from typing import Optional

DEFAULT_LOGGER_NAME = "forgecode"

# Logger instance cache
_logger_cache: Optional[logging.Logger] = None


class _ConsoleHandler(logging.StreamHandler):
    """StreamHandler that looks up sys.stdout/sys.stderr at emit time."""

    def __init__(self, stream_name: str):
        logging.Handler.__init__(self)
        self._stream_name = stream_name

    @property
    def stream(self):
        return getattr(sys, self._stream_name)


class _BelowWarning(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.WARNING


def get_logger(name: Optional[str] = None, verbose: bool = True) -> logging.Logger:
    """
    Get or create a logger instance.

    Args:
        name: Logger name (default: "forgecode")
        verbose: Whether to emit INFO lines (default: True)

    Returns:
        Configured logger instance
    """
    global _logger_cache

    logger_name = name or DEFAULT_LOGGER_NAME

    if _logger_cache is not None and _logger_cache.name == logger_name:
        return _logger_cache

    logger = logging.getLogger(logger_name)

    # Only configure if not already configured (avoid duplicate handlers)
    if not logger.handlers:
        level = logging.INFO if verbose else logging.WARNING
        logger.setLevel(level)

        # No timestamp for console output
        formatter = logging.Formatter('%(message)s')

        out = _ConsoleHandler("stdout")
        out.setLevel(level)
        out.addFilter(_BelowWarning())
        out.setFormatter(formatter)

        err = _ConsoleHandler("stderr")
        err.setLevel(logging.WARNING)
        err.setFormatter(formatter)

        logger.addHandler(out)
        logger.addHandler(err)
        logger.propagate = False

    _logger_cache = logger
    return logger

