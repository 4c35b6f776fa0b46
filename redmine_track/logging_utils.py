"""
Logging utilities for the Redmine time tracking client.

Messages go to stderr so that the report tables printed on stdout can be
piped or redirected on their own.
"""

import logging
import sys
from typing import Optional, TextIO


LOGGER_NAME = 'redmine_track'

PLAIN_FORMAT = '%(message)s'
VERBOSE_FORMAT = '%(levelname)-8s | %(name)s | %(message)s'


class ColoredFormatter(logging.Formatter):
    """
    Formatter that colours the whole message by log level.
    """

    # ANSI color codes
    COLORS = {
        logging.DEBUG: '\033[36m',      # Cyan
        logging.INFO: '',
        logging.WARNING: '\033[33m',    # Yellow
        logging.ERROR: '\033[31m',      # Red
        logging.CRITICAL: '\033[35m',   # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        formatted = super().format(record)
        color = self.COLORS.get(record.levelno, '')
        if not color:
            return formatted
        return f"{color}{formatted}{self.RESET}"


def setup_logging(verbose: bool = False, use_colors: bool = True,
                  stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Set up logging configuration.

    Args:
        verbose: If True, log debug messages (HTTP requests, fetched
            entry counts) with level and logger name
        use_colors: If True, colour messages when writing to a terminal
        stream: Output stream (defaults to stderr)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)

    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    stream = stream or sys.stderr
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)

    fmt = VERBOSE_FORMAT if verbose else PLAIN_FORMAT
    if use_colors and hasattr(stream, 'isatty') and stream.isatty():
        handler.setFormatter(ColoredFormatter(fmt=fmt))
    else:
        handler.setFormatter(logging.Formatter(fmt=fmt))

    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def log_step(step: str, logger: Optional[logging.Logger] = None):
    """Log a processing step."""
    (logger or get_logger()).info(f"→ {step}")


def log_error(error: str, logger: Optional[logging.Logger] = None):
    (logger or get_logger()).error(f"✗ {error}")


def log_success(message: str, logger: Optional[logging.Logger] = None):
    (logger or get_logger()).info(f"✓ {message}")


def log_warning(warning: str, logger: Optional[logging.Logger] = None):
    (logger or get_logger()).warning(f"⚠ {warning}")
