"""Centralized logging configuration for the EduCloud service."""

from __future__ import annotations

import logging
from logging import Logger
from pathlib import Path
from typing import Any, Iterable, List, Tuple


DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_FILE_NAME = "educloud.log"


def _handler_identity(handler: logging.Handler) -> Tuple[type, Any]:
    """Return what makes two handlers equivalent: their type and destination."""

    base_filename = getattr(handler, "baseFilename", None)
    if base_filename is not None:
        return type(handler), base_filename
    return type(handler), id(getattr(handler, "stream", handler))


def configure_logging(level: int = logging.INFO, *, handlers: Iterable[logging.Handler] | None = None) -> Logger:
    """Configure the root logger, skipping handlers equivalent to attached ones."""

    logger = logging.getLogger()
    logger.setLevel(level)

    if handlers is None:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
        handlers = [stream_handler]

    attached = {_handler_identity(existing) for existing in logger.handlers}
    for handler in handlers:
        identity = _handler_identity(handler)
        if identity in attached:
            handler.close()
            continue
        logger.addHandler(handler)
        attached.add(identity)

    return logger


def get_log_file_path(storage_root: Path) -> Path:
    """Return the log file kept beside, not inside, the public storage root."""

    return Path(storage_root).parent / LOG_FILE_NAME


def build_default_handlers(storage_root: Path) -> List[logging.Handler]:
    """Return a file handler next to *storage_root* plus a console handler."""

    formatter = logging.Formatter(DEFAULT_LOG_FORMAT)
    file_handler = logging.FileHandler(get_log_file_path(storage_root), encoding="utf-8")
    file_handler.setFormatter(formatter)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    return [file_handler, stream_handler]


__all__ = [
    "DEFAULT_LOG_FORMAT",
    "LOG_FILE_NAME",
    "build_default_handlers",
    "configure_logging",
    "get_log_file_path",
]
