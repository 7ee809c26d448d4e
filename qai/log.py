"""File logging for qai.

stdout belongs to the shell widget (it captures the suggested command), so
log records go to XDG_DATA_HOME/qai/logs/qai.log instead of the terminal.
"""

import logging
from pathlib import Path

from .xdg import APP_NAME, get_data_dir

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_log_dir() -> Path:
    """Get the log directory path."""
    return get_data_dir(APP_NAME) / "logs"


def get_log_file() -> Path:
    """Get the log file path."""
    return get_log_dir() / f"{APP_NAME}.log"


def setup_logging(debug: bool = False) -> Path:
    """Attach a file handler to the qai logger.

    Calling it again replaces the handler installed by a previous call.

    Args:
        debug: Log at DEBUG instead of INFO

    Returns:
        Path of the log file

    Raises:
        OSError: If the log directory or file cannot be created
    """
    log_file = get_log_file()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.set_name(APP_NAME)

    logger = logging.getLogger(APP_NAME)
    for existing in list(logger.handlers):
        if existing.get_name() == APP_NAME:
            logger.removeHandler(existing)
            existing.close()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    logger.info(f"Logging initialized, writing to: {log_file}")
    return log_file
