"""Helpers turning free-form academic metadata into path segments."""

from __future__ import annotations

import re
import unicodedata

from .errors import InvalidMetadata

__all__ = [
    "require_slug",
    "slugify",
]


_COMBINING_MARKS = re.compile(r"[\u0300-\u036f]")
_UNSAFE_CHARACTERS = re.compile(r"[^a-zA-Z0-9\-_\s]")
_WHITESPACE_RUN = re.compile(r"\s+")


def slugify(value: str) -> str:
    """Return a filesystem and URL friendly representation of *value*.

    Accents are stripped ("Cálculo" -> "Calculo"), anything outside ASCII
    letters, digits, ``-``, ``_`` and whitespace is dropped, the remainder is
    trimmed, whitespace runs become a single hyphen and the result is
    lower-cased. The steps run in that order; the result may be empty.
    """

    value = unicodedata.normalize("NFD", str(value))
    value = _COMBINING_MARKS.sub("", value)
    value = _UNSAFE_CHARACTERS.sub("", value)
    value = value.strip()
    value = _WHITESPACE_RUN.sub("-", value)
    return value.lower()


def require_slug(value: str, field: str) -> str:
    """Return ``slugify(value)`` or raise :class:`InvalidMetadata` when it is empty."""

    slug = slugify(value)
    if not slug:
        raise InvalidMetadata(
            f"El campo '{field}' no contiene caracteres válidos para una ruta"
        )
    return slug
