"""
Logging for the FAQ harvester.

Every stage logs through a child of the "faq_harvester" logger, so one call
to setup_logger() (done at import, redone by the CLI) decides where lines go:
stdout always, plus an optional UTF-8 log file.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "faq_harvester"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _has_file_handler(logger: logging.Logger, log_file: str) -> bool:
    target = str(Path(log_file).resolve())
    return any(
        isinstance(h, logging.FileHandler) and h.baseFilename == target
        for h in logger.handlers
    )


def setup_logger(
    name: str = PACKAGE_LOGGER,
    level: int = logging.INFO,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure the harvester's logger.

    Safe to call more than once: later calls re-level the existing handlers
    and attach log_file if it is not attached yet.

    Args:
        name: Logger name
        level: Logging level for the logger and all of its handlers
        log_file: Extra destination; source pages are French, so it is UTF-8

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file and not _has_file_handler(logger, log_file):
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    for handler in logger.handlers:
        handler.setLevel(level)

    return logger


logger = setup_logger()


def get_module_logger(module_name: str) -> logging.Logger:
    """Child logger for one stage, e.g. get_module_logger("loader")."""
    return logging.getLogger(f"{PACKAGE_LOGGER}.{module_name}")
