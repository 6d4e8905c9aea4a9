"""Bootstrap logic that prepares the runtime storage directory."""

from __future__ import annotations

import logging
from pathlib import Path

from . import config as config_module
from .config import AppConfig, load_config

LOGGER = logging.getLogger(__name__)


class BootstrapError(RuntimeError):
    """Raised when initialization cannot be completed."""


class Bootstrapper:
    """High level object orchestrating initialization steps."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config

    @property
    def config(self) -> AppConfig:
        return self._config

    def initialize(self) -> None:
        """Run all bootstrap tasks."""

        LOGGER.debug("Starting bootstrap sequence")
        self._ensure_storage_root()
        LOGGER.info("Bootstrap completed successfully")

    def _ensure_storage_root(self) -> None:
        storage_root = self._config.storage_root
        if not config_module._ensure_writable_directory(storage_root):
            raise BootstrapError(f"Storage directory '{storage_root}' is not writable")
        LOGGER.debug("Ensured directory exists: %s", storage_root)


def initialize_app(config_path: Path | None = None) -> AppConfig:
    """Convenience helper that loads configuration and runs initialization."""

    config = load_config(config_path=config_path)
    bootstrapper = Bootstrapper(config)
    bootstrapper.initialize()
    return config


__all__ = ["BootstrapError", "Bootstrapper", "initialize_app"]
