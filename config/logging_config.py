"""
Centralized logging configuration.

All project loggers live under the ``letter_translator`` namespace. The
console and rotating-file handlers are attached once, to that namespace
logger, with level and file path taken from Settings (LOG_LEVEL / LOG_FILE
in .env).
"""
import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from .constants import (
    LOG_ROOT_NAME, LOG_FORMAT, LOG_MAX_SIZE_MB, LOG_BACKUP_COUNT
)


def _configured_defaults():
    from .settings import get_settings
    settings = get_settings()
    return settings.log_level, settings.log_file


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None,
                  force: bool = False) -> logging.Logger:
    """
    Attach handlers to the ``letter_translator`` logger.

    Args:
        level: Level name for the file handler and the logger itself.
            Defaults to Settings.log_level.
        log_file: Rotating log file path. Defaults to Settings.log_file;
            an empty string disables file logging.
        force: Replace handlers installed by an earlier call.

    Returns:
        The namespace logger.
    """
    root = logging.getLogger(LOG_ROOT_NAME)

    if root.handlers and not force:
        return root

    if level is None or log_file is None:
        default_level, default_file = _configured_defaults()
        level = level if level is not None else default_level
        log_file = log_file if log_file is not None else default_file

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level!r}")

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(numeric_level)

    formatter = logging.Formatter(LOG_FORMAT)

    # Console stays at INFO or quieter; DEBUG admission chatter goes to the file
    console = logging.StreamHandler()
    console.setLevel(max(numeric_level, logging.INFO))
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=LOG_MAX_SIZE_MB * 1024 * 1024,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    return root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Logger for a module, e.g. ``get_logger(__name__)`` in core/backoff.py
    returns ``letter_translator.core.backoff``.
    """
    setup_logging()
    if not name or name == LOG_ROOT_NAME:
        return logging.getLogger(LOG_ROOT_NAME)
    if name.startswith(LOG_ROOT_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOG_ROOT_NAME}.{name}")
