"""
Logger setup for structured logging.

Provides consistent logging across the package with color-coded output.
Log records go to stderr so composed documents written to stdout stay clean.
"""

import logging
import sys
from typing import Optional
from pathlib import Path

from yaml_import.config.settings import get_settings


class ColoredFormatter(logging.Formatter):
    """Colored log formatter for terminal output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'
    BOLD = '\033[1m'

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = (
                f"{self.BOLD}{self.COLORS[levelname]}{levelname}{self.RESET}"
            )

        result = super().format(record)

        # Reset levelname for the next handler
        record.levelname = levelname

        return result


def setup_logger(
    name: str,
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    use_color: bool = True,
) -> logging.Logger:
    """
    Setup and configure a logger with optional file output.

    Args:
        name: Logger name (usually __name__)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL);
            defaults to the configured ``log_level`` setting
        log_file: Optional file path for logging to file
        use_color: Whether to use colored output (only for console)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    logger.setLevel(getattr(logging, (level or get_settings().log_level).upper()))

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    logger.propagate = False

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG)

    if use_color and sys.stderr.isatty():
        formatter = ColoredFormatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
    else:
        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)

        # File logs don't need color
        file_formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger


def set_package_level(level: str) -> None:
    """
    Change the level of every logger configured under this package.

    Args:
        level: Log level name
    """
    numeric = getattr(logging, level.upper())
    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith("yaml_import") and isinstance(logger, logging.Logger):
            logger.setLevel(numeric)
