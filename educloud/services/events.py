"""Structured event helpers shared across the service."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional


DEFAULT_EVENT_LOGGER = logging.getLogger("educloud.events")

_MAX_VALUE_LENGTH = 200


def sanitize_context_value(value: Any) -> Any:
    """Return a log-friendly representation for *value*."""

    if value is None:
        return None
    if isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Path):
        return value.as_posix()
    if isinstance(value, (list, tuple, set)):
        text = ", ".join(str(item) for item in value)
    else:
        text = str(value)
    text = text.strip()
    if not text:
        return None
    if len(text) > _MAX_VALUE_LENGTH:
        return text[:_MAX_VALUE_LENGTH] + "…"
    return text


def normalize_context(values: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Drop empty entries and sanitise the remaining values."""

    if not values:
        return {}
    normalised: Dict[str, Any] = {}
    for key, raw_value in values.items():
        if not key:
            continue
        value = sanitize_context_value(raw_value)
        if value is None:
            continue
        normalised[str(key)] = value
    return normalised


def emit_structured_event(
    event_type: str,
    message: str,
    *,
    payload: Optional[Dict[str, Any]] = None,
    correlation: Optional[Dict[str, Any]] = None,
    duration_ms: Optional[float] = None,
    level: int = logging.INFO,
    logger: logging.Logger | logging.LoggerAdapter = DEFAULT_EVENT_LOGGER,
) -> None:
    """Log ``message`` tagged with ``event_type`` and flattened details."""

    base_message = str(message).strip()
    normalised_payload = normalize_context(payload)
    normalised_correlation = normalize_context(correlation)
    details = {**normalised_correlation, **normalised_payload}
    if duration_ms is not None:
        details["duration_ms"] = round(float(duration_ms), 2)
    details_text = ", ".join(f"{key}={value}" for key, value in details.items())
    display_message = f"[{event_type}] {base_message}" if event_type else base_message
    log_message = f"{display_message} ({details_text})" if details_text else display_message
    extra: Dict[str, Any] = {
        "event": base_message,
        "event_type": event_type or "",
        "event_payload": normalised_payload,
    }
    logger.log(level, log_message, extra=extra)


def emit_file_event(
    operation: str,
    *,
    payload: Optional[Dict[str, Any]] = None,
    correlation: Optional[Dict[str, Any]] = None,
    duration_ms: Optional[float] = None,
    level: int = logging.INFO,
    logger: logging.Logger | logging.LoggerAdapter = DEFAULT_EVENT_LOGGER,
) -> None:
    """Emit a structured file-system event."""

    emit_structured_event(
        "FILE_OP",
        operation,
        payload=payload,
        correlation=correlation,
        duration_ms=duration_ms,
        level=level,
        logger=logger,
    )


__all__ = [
    "DEFAULT_EVENT_LOGGER",
    "emit_file_event",
    "emit_structured_event",
    "normalize_context",
    "sanitize_context_value",
]
