"""Document processing backends."""

from .pdf_text import PdfDependencyError, PdfTextExtractionError, extract_pdf_text

__all__ = [
    "PdfDependencyError",
    "PdfTextExtractionError",
    "extract_pdf_text",
]
