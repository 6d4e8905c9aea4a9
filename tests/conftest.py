from __future__ import annotations

import io
import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from educloud.bootstrap import Bootstrapper
from educloud.config import AppConfig


class StubFlashcardGenerator:
    """Deterministic generator that records the text it receives."""

    def __init__(self, cards: List[Dict[str, Any]] | None = None) -> None:
        self.cards = cards if cards is not None else [
            {"pregunta": "¿Qué es una derivada?", "respuesta": "La tasa de cambio instantánea."}
        ]
        self.calls: List[str] = []

    def generate(self, text: str) -> List[Dict[str, Any]]:
        self.calls.append(text)
        return list(self.cards)


def build_sample_pdf(*lines: str) -> bytes:
    fitz = pytest.importorskip("fitz")
    document = fitz.open()
    page = document.new_page()
    for index, line in enumerate(lines or ("Sample page",)):
        page.insert_text((72, 72 + (index * 18)), line)
    buffer = io.BytesIO()
    document.save(buffer)
    document.close()
    return buffer.getvalue()


@pytest.fixture()
def temp_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> AppConfig:
    monkeypatch.chdir(tmp_path)

    config = AppConfig.from_mapping(
        {
            "storage_root": "uploads",
            "request_timeout_seconds": 5,
        },
        base_path=tmp_path,
    )

    Bootstrapper(config).initialize()
    return config


@pytest.fixture()
def stub_generator() -> StubFlashcardGenerator:
    return StubFlashcardGenerator()
