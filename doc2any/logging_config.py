"""Logging configuration for the doc2any converter."""

import atexit
import logging
from logging import Handler
from pathlib import Path
from typing import List, Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are chatty at DEBUG
NOISY_LOGGERS = ("PIL", "fontTools", "pdfminer", "cairosvg")


def _cleanup_logging() -> None:
    """Close and remove root logging handlers."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        try:
            handler.close()
        except Exception:
            pass
        root_logger.removeHandler(handler)


def setup_logging(
    log_level: str = "INFO",
    log_dir: Union[str, Path] = ".doc2any",
    log_file: Optional[str] = None,
) -> None:
    """Set up logging configuration.

    Args:
        log_level: The logging level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for the log file
        log_file: Optional log file name. If None, logs only to console
    """
    atexit.register(_cleanup_logging)
    _cleanup_logging()

    handlers: List[Handler] = []

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handlers.append(console_handler)

    if log_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path / log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
