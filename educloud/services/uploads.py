"""Validation and orchestration for PDF uploads."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, BinaryIO, Callable, Dict, Mapping, Optional

from .analysis import AnalysisResult, placeholder_analysis
from .errors import (
    EduCloudError,
    InternalError,
    InvalidFileType,
    MissingFile,
    MissingMetadata,
)
from .storage import PDF_SUFFIX, StoragePlacer, StoredDocument, UploadMetadata, WriteGuard


LOGGER = logging.getLogger(__name__)

NAME_FIELD = "nombre"
PROGRAM_FIELD = "carrera"
SEMESTER_FIELD = "semestre"
SUBJECT_FIELD = "asignatura"
METADATA_FIELDS = (NAME_FIELD, PROGRAM_FIELD, SEMESTER_FIELD, SUBJECT_FIELD)

SUCCESS_MESSAGE = "Archivo recibido y guardado correctamente"


def validate_upload(
    filename: Optional[str],
    fields: Mapping[str, Optional[str]],
) -> UploadMetadata:
    """Check the request shape and return the parsed metadata.

    Checks run in a fixed order and stop at the first failure: a file must be
    attached, all four metadata fields must be present and non-empty, and the
    filename must carry a ``.pdf`` extension.
    """

    if not filename:
        raise MissingFile()

    if any(not fields.get(key) for key in METADATA_FIELDS):
        raise MissingMetadata()

    if not filename.lower().endswith(PDF_SUFFIX):
        raise InvalidFileType()

    return UploadMetadata(
        name=str(fields[NAME_FIELD]),
        program=str(fields[PROGRAM_FIELD]),
        semester=str(fields[SEMESTER_FIELD]),
        subject=str(fields[SUBJECT_FIELD]),
    )


@dataclass(frozen=True)
class UploadOutcome:
    document: StoredDocument
    analysis: AnalysisResult
    message: str = SUCCESS_MESSAGE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mensaje": self.message,
            "storage": self.document.to_dict(),
            "resultados": self.analysis.to_dict(),
        }


class UploadHandler:
    """Validate uploads, place them on disk and attach study material."""

    def __init__(
        self,
        placer: StoragePlacer,
        *,
        analysis_factory: Callable[[], AnalysisResult] = placeholder_analysis,
    ) -> None:
        self._placer = placer
        self._analysis_factory = analysis_factory

    def prepare(
        self,
        filename: Optional[str],
        fields: Mapping[str, Optional[str]],
    ) -> UploadMetadata:
        """Validate the request and its target path without touching the disk."""

        metadata = validate_upload(filename, fields)
        self._placer.plan(metadata)
        return metadata

    def store(
        self,
        metadata: UploadMetadata,
        source: BinaryIO,
        guard: Optional[WriteGuard] = None,
    ) -> UploadOutcome:
        try:
            document = self._placer.place_stream(metadata, source, guard=guard)
            analysis = self._analysis_factory()
        except EduCloudError:
            raise
        except Exception as error:
            LOGGER.exception("Failed to store upload for %s", metadata)
            raise InternalError() from error
        LOGGER.info("Stored upload at %s", document.stored_path)
        return UploadOutcome(document=document, analysis=analysis)

    def handle(
        self,
        filename: Optional[str],
        source: Optional[BinaryIO],
        fields: Mapping[str, Optional[str]],
    ) -> UploadOutcome:
        """Run validation and storage for a single upload."""

        if source is None:
            raise MissingFile()
        metadata = self.prepare(filename, fields)
        return self.store(metadata, source)


__all__ = [
    "METADATA_FIELDS",
    "UploadHandler",
    "UploadOutcome",
    "validate_upload",
]
