from __future__ import annotations

import logging
from pathlib import Path

import pytest

from educloud.logging_utils import build_default_handlers, configure_logging, get_log_file_path


@pytest.fixture()
def root_logger():
    logger = logging.getLogger()
    original_handlers = list(logger.handlers)
    original_level = logger.level
    yield logger
    for handler in list(logger.handlers):
        if handler not in original_handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(original_level)


def test_log_file_lives_outside_storage_root(tmp_path: Path) -> None:
    storage_root = tmp_path / "uploads"

    assert get_log_file_path(storage_root) == tmp_path / "educloud.log"


def test_repeated_configuration_does_not_stack_handlers(root_logger, tmp_path: Path) -> None:
    storage_root = tmp_path / "uploads"
    storage_root.mkdir()

    configure_logging(handlers=build_default_handlers(storage_root))
    count = len(root_logger.handlers)
    configure_logging(handlers=build_default_handlers(storage_root))

    assert len(root_logger.handlers) == count
    file_handlers = [
        handler
        for handler in root_logger.handlers
        if getattr(handler, "baseFilename", None) == str(get_log_file_path(storage_root))
    ]
    assert len(file_handlers) == 1
