"""Configuration loading utilities for the EduCloud service."""

from __future__ import annotations

import contextlib
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Tuple


LOGGER = logging.getLogger(__name__)


_PERMISSION_SENTINEL = ".educloud_write_check"

DEFAULT_STORAGE_ROOT = "uploads"
DEFAULT_PUBLIC_PREFIX = "/uploads"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_FLASHCARD_LANGUAGE = "español"
DEFAULT_FLASHCARD_COUNT = 5
DEFAULT_MAX_TEXT_CHARS = 3000
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_API_KEY_ENV = "GEMINI_API_KEY"


def _ensure_writable_directory(path: Path) -> bool:
    """Return ``True`` if *path* can be created and written to."""

    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError:
        return False

    test_file = path / _PERMISSION_SENTINEL
    try:
        with test_file.open("w", encoding="utf-8") as handle:
            handle.write("ok")
    except OSError:
        return False
    finally:
        with contextlib.suppress(OSError):
            test_file.unlink()

    return True


def _select_writable_directory(
    preferred: Path,
    *,
    label: str,
    fallbacks: Iterable[Path] = (),
) -> Tuple[Path, bool]:
    """Return a usable directory based on ``preferred`` and ``fallbacks``.

    The first writable candidate wins. When none can be prepared the original
    ``preferred`` path is returned so later checks report the failure.
    """

    preferred = preferred.resolve()
    if _ensure_writable_directory(preferred):
        return preferred, False

    for fallback in fallbacks:
        candidate = fallback.resolve()
        if candidate == preferred:
            continue
        if _ensure_writable_directory(candidate):
            LOGGER.warning(
                "Preferred %s directory '%s' is not writable; using fallback '%s'.",
                label,
                preferred,
                candidate,
            )
            return candidate, True

    LOGGER.warning(
        "%s directory '%s' is not writable and no fallback is available.",
        label.capitalize(),
        preferred,
    )
    return preferred, False


def _normalize_public_prefix(value: Any) -> str:
    prefix = str(value or "").strip().rstrip("/")
    if not prefix:
        return DEFAULT_PUBLIC_PREFIX
    if not prefix.startswith("/"):
        prefix = f"/{prefix}"
    return prefix


@dataclass(frozen=True)
class AppConfig:
    """Runtime settings shared by the storage, web and flashcard layers."""

    storage_root: Path
    public_prefix: str = DEFAULT_PUBLIC_PREFIX
    gemini_model: str = DEFAULT_GEMINI_MODEL
    flashcard_language: str = DEFAULT_FLASHCARD_LANGUAGE
    flashcard_count: int = DEFAULT_FLASHCARD_COUNT
    max_text_chars: int = DEFAULT_MAX_TEXT_CHARS
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    api_key_env: str = DEFAULT_API_KEY_ENV

    @classmethod
    def from_mapping(cls, mapping: Dict[str, Any], *, base_path: Path) -> "AppConfig":
        preferred_storage = (base_path / mapping.get("storage_root", DEFAULT_STORAGE_ROOT)).resolve()
        storage_fallback = Path.home() / ".educloud" / "uploads"
        storage_root, _ = _select_writable_directory(
            preferred_storage,
            label="storage",
            fallbacks=(storage_fallback,),
        )

        return cls(
            storage_root=storage_root,
            public_prefix=_normalize_public_prefix(mapping.get("public_prefix")),
            gemini_model=str(mapping.get("gemini_model") or DEFAULT_GEMINI_MODEL),
            flashcard_language=str(
                mapping.get("flashcard_language") or DEFAULT_FLASHCARD_LANGUAGE
            ),
            flashcard_count=int(mapping.get("flashcard_count", DEFAULT_FLASHCARD_COUNT)),
            max_text_chars=int(mapping.get("max_text_chars", DEFAULT_MAX_TEXT_CHARS)),
            request_timeout_seconds=float(
                mapping.get("request_timeout_seconds", DEFAULT_REQUEST_TIMEOUT_SECONDS)
            ),
            api_key_env=str(mapping.get("api_key_env") or DEFAULT_API_KEY_ENV),
        )


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load the application configuration from ``config/default.json`` by default."""

    base_path = Path(__file__).resolve().parent.parent
    if config_path is None:
        config_path = base_path / "config" / "default.json"

    with config_path.open("r", encoding="utf-8") as config_file:
        raw_config = json.load(config_file)

    return AppConfig.from_mapping(raw_config, base_path=base_path)


__all__ = ["AppConfig", "load_config"]
