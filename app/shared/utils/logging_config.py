"""
Logging configuration shared by every layer.

Modules obtain their logger with ``get_logger(__name__)``; the application
entry point calls ``setup_logging`` once with the configured level and file.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
ROOT_LOGGER_NAME = "app"


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure console (and optional file) handlers on the application logger.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path of a UTF-8 log file

    Returns:
        The configured application root logger
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level.upper())
    root.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    return root


def get_logger(name: str) -> logging.Logger:
    """Get a module logger under the application namespace."""
    if not name.startswith(ROOT_LOGGER_NAME) and name != "__main__":
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
