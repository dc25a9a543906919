"""
Logging configuration and setup.

Console output is colorized by level; an optional file handler adds the
function name and line number to each record.
"""

import logging
import sys
from pathlib import Path

from tarkovguide.config.settings import Settings


class ColoredFormatter(logging.Formatter):
    """Formatter that adds color to console output."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with a colored level name."""
        original = record.levelname
        if original in self.COLORS:
            record.levelname = f"{self.COLORS[original]}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Records are shared between handlers; keep the file log free of ANSI codes
            record.levelname = original


def setup_logging(settings: Settings) -> None:
    """
    Configure the ``tarkovguide`` logger hierarchy from settings.

    Args:
        settings: Application settings containing log configuration
    """
    level = getattr(logging, settings.log_level)

    root_logger = logging.getLogger("tarkovguide")
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        ColoredFormatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(console_handler)

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(file_handler)

    # Don't propagate to root logger
    root_logger.propagate = False

    root_logger.info(f"Logging initialized - Level: {settings.log_level}")
    if settings.log_file:
        root_logger.info(f"Logging to file: {settings.log_file}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Module names already under the package (``tarkovguide.x``) are used as-is;
    anything else is nested below ``tarkovguide``.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger inside the ``tarkovguide`` hierarchy
    """
    if name == "tarkovguide" or name.startswith("tarkovguide."):
        return logging.getLogger(name)
    return logging.getLogger(f"tarkovguide.{name}")
