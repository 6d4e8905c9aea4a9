from __future__ import annotations

import re

import pytest

from educloud.services.errors import InvalidMetadata
from educloud.services.naming import require_slug, slugify


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("Ana López", "ana-lopez"),
        ("Ingeniería", "ingenieria"),
        ("Cálculo I", "calculo-i"),
        ("  Física   Cuántica\t II ", "fisica-cuantica-ii"),
        ("3", "3"),
        ("Año 2024/2025", "ano-20242025"),
        ("mecánica_de-fluidos", "mecanica_de-fluidos"),
        ("Ñandú", "nandu"),
        ("../../etc/passwd", "etcpasswd"),
        ("C:\\Windows", "cwindows"),
    ],
)
def test_slugify_examples(value: str, expected: str) -> None:
    assert slugify(value) == expected


SAMPLES = [
    "Ana López",
    "ÉCOLE  Polytechnique",
    "Programación Orientada a Objetos (POO)",
    "  --__  ",
    "Über Straße",
    "emoji 📚 notes",
    "",
    "....",
    "ﬁnal ﬂow",
]


@pytest.mark.parametrize("value", SAMPLES)
def test_slugify_is_idempotent(value: str) -> None:
    once = slugify(value)
    assert slugify(once) == once


@pytest.mark.parametrize("value", SAMPLES)
def test_slugify_output_is_path_safe(value: str) -> None:
    slug = slugify(value)
    assert re.fullmatch(r"[a-z0-9_\-]*", slug)
    assert "/" not in slug and "\\" not in slug and ".." not in slug


def test_slugify_strips_diacritics_before_filtering() -> None:
    # Without decomposition the accented letters would be dropped entirely.
    assert slugify("Álgebra Lineal") == "algebra-lineal"


def test_require_slug_rejects_empty_result() -> None:
    with pytest.raises(InvalidMetadata) as excinfo:
        require_slug("¿¡!?", "asignatura")

    assert "asignatura" in str(excinfo.value)
    assert excinfo.value.status_code == 400


def test_require_slug_returns_slug() -> None:
    assert require_slug("Cálculo I", "asignatura") == "calculo-i"
