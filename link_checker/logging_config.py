"""
Logging setup shared by the CLI and the scan engine.
"""
import logging
import sys
from pathlib import Path
from typing import Optional


APP_LOGGER = "link_checker"
LOG_FILE = Path("link_checker.log")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: int = logging.INFO, log_file: Optional[Path] = LOG_FILE) -> logging.Logger:
    """Attach handlers to the ``link_checker`` logger.

    Scan and import summaries reach stderr at ``level``. Per-link probe
    results are DEBUG records and only land in ``log_file``; pass None to
    skip the file. Repeated calls leave existing handlers alone.
    """
    logger = logging.getLogger(APP_LOGGER)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    fmt = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(fmt)
    logger.addHandler(console)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(fmt)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Module logger, e.g. ``get_logger("ingestion")`` -> ``link_checker.ingestion``."""
    return logging.getLogger(f"{APP_LOGGER}.{name}")
