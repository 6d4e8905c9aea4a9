"""Exception hierarchy surfaced by the upload and flashcard services."""

from __future__ import annotations


class EduCloudError(Exception):
    """Base exception for failures reported back to clients.

    ``status_code`` tells the web layer which HTTP status to answer with and
    ``str(error)`` is the human readable message placed in the ``error`` field.
    """

    status_code = 500
    default_message = "Error interno del servidor"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class MissingFile(EduCloudError):
    """Raised when an upload arrives without a file part."""

    status_code = 400
    default_message = "No se envió ningún archivo"


class MissingMetadata(EduCloudError):
    """Raised when one of the academic metadata fields is absent or empty."""

    status_code = 400
    default_message = "Faltan campos: nombre, carrera, semestre o asignatura"


class InvalidFileType(EduCloudError):
    status_code = 400
    default_message = "El archivo debe ser PDF"


class InvalidMetadata(EduCloudError):
    """Raised when a metadata field normalizes to an empty path segment."""

    status_code = 400
    default_message = "Metadatos inválidos"


class FileNotFound(EduCloudError):
    status_code = 404
    default_message = "Archivo no encontrado"


class ExternalServiceError(EduCloudError):
    """Raised when the generative-AI provider fails or returns malformed output."""

    status_code = 500
    default_message = "Error generando flashcards con IA."


class InternalError(EduCloudError):
    status_code = 500
    default_message = "Error al procesar el archivo"


__all__ = [
    "EduCloudError",
    "ExternalServiceError",
    "FileNotFound",
    "InternalError",
    "InvalidFileType",
    "InvalidMetadata",
    "MissingFile",
    "MissingMetadata",
]
