"""PDF text extraction backed by PyMuPDF."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union


LOGGER = logging.getLogger(__name__)


class PdfTextExtractionError(RuntimeError):
    """Raised when text cannot be read from a PDF document."""


class PdfDependencyError(PdfTextExtractionError):
    """Raised when PyMuPDF is unavailable."""


def extract_pdf_text(source: Union[Path, bytes]) -> str:
    """Return the raw text of every page in *source*, pages separated by newlines."""

    try:
        import fitz  # type: ignore
    except ImportError as exc:  # pragma: no cover - runtime check
        raise PdfDependencyError("PyMuPDF (fitz) is not installed") from exc

    document = None
    try:
        if isinstance(source, Path):
            document = fitz.open(source)
        else:
            document = fitz.open(stream=source, filetype="pdf")
        pages = [page.get_text("text") for page in document]
    except Exception as error:
        raise PdfTextExtractionError("Unable to read PDF text") from error
    finally:
        if document is not None:
            document.close()

    text = "\n".join(pages)
    LOGGER.debug("Extracted %s characters from %s page(s)", len(text), len(pages))
    return text


__all__ = ["PdfDependencyError", "PdfTextExtractionError", "extract_pdf_text"]
