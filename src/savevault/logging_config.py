"""Logging configuration for SaveVault.

Provides centralized logging setup with file and console handlers. Modules
obtain child loggers through ``get_logger`` so everything lands under the
``savevault`` logger.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
import sys

ROOT_LOGGER_NAME = "savevault"
LOG_FILE_NAME = "savevault.log"


def default_log_dir() -> Path:
    appdata = os.environ.get("APPDATA")
    if appdata:
        return Path(appdata) / "SaveVault"
    return Path.home() / ".savevault"


def setup_logging(debug: bool = False, log_dir: Path | None = None) -> logging.Logger:
    """Configure application-wide logging.

    Args:
        debug: If True, also log to the console at DEBUG level
        log_dir: Directory for the log file; defaults to the per-user app folder

    Returns:
        The root logger for the application
    """
    log_dir = log_dir or default_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    file_handler = logging.FileHandler(log_dir / LOG_FILE_NAME, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(file_handler)

    if debug:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(logging.Formatter("%(levelname)s - %(name)s - %(message)s"))
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger for a specific module (e.g. 'crawler', 'registry')."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
