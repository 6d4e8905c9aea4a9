"""Flashcard generation for stored PDFs through a generative-AI provider."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol

from google import genai
from google.genai import types

from ..processing import PdfTextExtractionError, extract_pdf_text
from .errors import ExternalServiceError, FileNotFound, InternalError
from .storage import StoragePlacer


LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_TEXT_CHARS = 3000
DEFAULT_FLASHCARD_COUNT = 5
DEFAULT_LANGUAGE = "español"

PROMPT_TEMPLATE = (
    "Genera {count} flashcards de estudio en {language} basadas en el siguiente texto:\n\n"
    "{text}\n\n"
    'Devuélvelas en formato JSON con "pregunta" y "respuesta".'
)

_EMPTY_RESPONSE = "[]"


class FlashcardGenerator(Protocol):
    """Protocol describing a flashcard backend."""

    def generate(self, text: str) -> List[Dict[str, Any]]:
        """Return question/answer cards synthesised from *text*."""


def build_prompt(
    text: str,
    *,
    count: int = DEFAULT_FLASHCARD_COUNT,
    language: str = DEFAULT_LANGUAGE,
) -> str:
    return PROMPT_TEMPLATE.format(count=count, language=language, text=text)


def parse_flashcards(raw_text: str) -> List[Dict[str, Any]]:
    """Decode the model output into a list of flashcards.

    Models frequently wrap JSON in Markdown fences even when asked not to, so
    those are stripped before decoding.
    """

    cleaned = raw_text.replace("```json", "").replace("```", "").strip() or _EMPTY_RESPONSE
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as error:
        LOGGER.warning("Model returned non-JSON flashcards: %.200s", cleaned)
        raise ExternalServiceError("La IA devolvió una respuesta que no es JSON válido.") from error
    if not isinstance(payload, list):
        raise ExternalServiceError("La IA no devolvió una lista de flashcards.")
    return payload


def _first_candidate_text(response: Any) -> str:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return _EMPTY_RESPONSE
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    if not parts:
        return _EMPTY_RESPONSE
    return getattr(parts[0], "text", None) or _EMPTY_RESPONSE


class GeminiFlashcardGenerator:
    """Generate flashcards with Google Gemini via ``google-genai``.

    The API key is looked up in the environment on every call, so a key added
    after startup is picked up without restarting the service.
    """

    def __init__(
        self,
        model: str,
        *,
        language: str = DEFAULT_LANGUAGE,
        count: int = DEFAULT_FLASHCARD_COUNT,
        timeout_seconds: float = 30.0,
        api_key_env: str = "GEMINI_API_KEY",
        client_factory: Optional[Callable[[str], Any]] = None,
    ) -> None:
        self._model = model
        self._language = language
        self._count = count
        self._timeout_seconds = timeout_seconds
        self._api_key_env = api_key_env
        self._client_factory = client_factory or self._create_client

    def _create_client(self, api_key: str) -> genai.Client:
        timeout_ms = max(1, int(self._timeout_seconds * 1000))
        return genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=timeout_ms),
        )

    def generate(self, text: str) -> List[Dict[str, Any]]:
        api_key = os.getenv(self._api_key_env)
        if not api_key:
            raise ExternalServiceError(
                f"La variable de entorno {self._api_key_env} no está configurada."
            )

        prompt = build_prompt(text, count=self._count, language=self._language)
        try:
            client = self._client_factory(api_key)
            response = client.models.generate_content(
                model=self._model,
                contents=prompt,
                config=types.GenerateContentConfig(response_mime_type="application/json"),
            )
        except Exception as error:  # noqa: BLE001
            LOGGER.error("Gemini request with model %s failed: %s", self._model, error)
            raise ExternalServiceError() from error

        return parse_flashcards(_first_candidate_text(response))


class FlashcardService:
    """Read a stored PDF and turn its text into flashcards."""

    def __init__(
        self,
        placer: StoragePlacer,
        generator: FlashcardGenerator,
        *,
        max_chars: int = DEFAULT_MAX_TEXT_CHARS,
        extractor: Callable[[Path], str] = extract_pdf_text,
    ) -> None:
        self._placer = placer
        self._generator = generator
        self._max_chars = max_chars
        self._extractor = extractor

    def load_text(self, relative_path: str) -> str:
        """Return the truncated text of the stored PDF at *relative_path*."""

        target = self._placer.resolve(relative_path)
        if not target.is_file():
            raise FileNotFound()
        try:
            text = self._extractor(target)
        except PdfTextExtractionError as error:
            LOGGER.warning("Could not extract text from %s: %s", target, error)
            raise InternalError("No se pudo leer el texto del PDF.") from error
        return text[: self._max_chars]

    def generate_for(self, relative_path: str) -> List[Dict[str, Any]]:
        text = self.load_text(relative_path)
        flashcards = self._generator.generate(text)
        LOGGER.info("Generated %s flashcard(s) for %s", len(flashcards), relative_path)
        return flashcards


__all__ = [
    "FlashcardGenerator",
    "FlashcardService",
    "GeminiFlashcardGenerator",
    "build_prompt",
    "parse_flashcards",
]
