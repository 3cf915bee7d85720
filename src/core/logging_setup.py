"""Log to a timestamped file under <config_dir>/logs. Level OFF installs nothing."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "src"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

LOG_LEVELS: dict[str, Optional[int]] = {
    "OFF": None,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    # no finer level in the standard library
    "TRACE": logging.DEBUG,
}


def setup_logging(config_dir: Path, level_name: str) -> Optional[Path]:
    """Returns the path of the log file, or None when logging is turned off"""
    level = LOG_LEVELS.get(level_name.upper())
    if level is None:
        return None

    log_dir = config_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    log_file = log_dir / f"chess-tui_{timestamp}.log"

    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    logger.addHandler(handler)

    logger.info("Logging initialized at %s level", level_name.upper())
    return log_file
