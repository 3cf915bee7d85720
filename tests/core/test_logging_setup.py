"""Unit tests for src/core/logging_setup.py"""

import logging
from pathlib import Path
from typing import Generator

import pytest

from src.core.logging_setup import PACKAGE_LOGGER, setup_logging


@pytest.fixture(autouse=True)
def restore_package_logger() -> Generator[None, None, None]:
    logger = logging.getLogger(PACKAGE_LOGGER)
    handlers, level = list(logger.handlers), logger.level
    yield
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers = handlers
    logger.setLevel(level)


def test_off_installs_nothing(tmp_path: Path) -> None:
    assert setup_logging(tmp_path, "OFF") is None
    assert not (tmp_path / "logs").exists()


def test_unknown_level_installs_nothing(tmp_path: Path) -> None:
    assert setup_logging(tmp_path, "chatty") is None


def test_log_file_is_written(tmp_path: Path) -> None:
    log_file = setup_logging(tmp_path, "info")
    assert log_file is not None
    assert log_file.parent == tmp_path / "logs"
    assert log_file.name.startswith("chess-tui_")

    logging.getLogger("src.chess.game").info("Move e2e4 played")
    logging.getLogger("src.chess.game").debug("not at this level")
    for handler in logging.getLogger(PACKAGE_LOGGER).handlers:
        handler.flush()

    content = log_file.read_text(encoding="utf-8")
    assert "Logging initialized at INFO level" in content
    assert "[INFO] src.chess.game: Move e2e4 played" in content
    assert "not at this level" not in content


def test_trace_maps_to_debug(tmp_path: Path) -> None:
    setup_logging(tmp_path, "TRACE")
    assert logging.getLogger(PACKAGE_LOGGER).level == logging.DEBUG
