"""
FILE: tabdo/log.py
PURPOSE: File logging for the application
EXPORTS:
  - LOG_PATH: Default log file location
  - LOG_FORMAT: Record format
  - configure_logging(path, debug) -> Path
DEPENDENCIES:
  - logging, logging.handlers (stdlib)
  - tabdo.core.exceptions (StorageIOError)
NOTES:
  - The full-screen UI owns the terminal, so records go to a file
  - Safe to call repeatedly: the previous tabdo handler is replaced
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .core.exceptions import StorageIOError


LOG_DIR = Path.home() / ".tabdo"
LOG_PATH = LOG_DIR / "tabdo.log"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_HANDLER_NAME = "tabdo-file"


def configure_logging(path=None, debug: bool = False) -> Path:
    """
    Send the `tabdo` logger hierarchy to a rotating log file.

    Args:
        path: Log file (defaults to LOG_PATH)
        debug: Log at DEBUG instead of INFO

    Returns:
        The log file path

    Raises:
        StorageIOError: If the log file cannot be opened
    """
    path = Path(path).expanduser() if path else LOG_PATH
    logger = logging.getLogger("tabdo")

    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)
            handler.close()

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(path, maxBytes=1_000_000, backupCount=2, encoding="utf-8")
    except OSError as e:
        raise StorageIOError(path, e.strerror or str(e)) from e

    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    return path
