from __future__ import annotations

import io
from typing import Dict, Optional

import pytest

from educloud.config import AppConfig
from educloud.services.errors import (
    InternalError,
    InvalidFileType,
    InvalidMetadata,
    MissingFile,
    MissingMetadata,
)
from educloud.services.storage import StoragePlacer, UploadMetadata
from educloud.services.uploads import UploadHandler, validate_upload


def _fields(**overrides: Optional[str]) -> Dict[str, Optional[str]]:
    fields: Dict[str, Optional[str]] = {
        "nombre": "Ana López",
        "carrera": "Ingeniería",
        "semestre": "3",
        "asignatura": "Cálculo I",
    }
    fields.update(overrides)
    return fields


def test_validate_upload_returns_metadata() -> None:
    metadata = validate_upload("Apuntes.PDF", _fields())

    assert metadata == UploadMetadata(
        name="Ana López", program="Ingeniería", semester="3", subject="Cálculo I"
    )


def test_missing_file_is_reported_first() -> None:
    with pytest.raises(MissingFile):
        validate_upload(None, _fields(asignatura=None))


@pytest.mark.parametrize("field", ["nombre", "carrera", "semestre", "asignatura"])
@pytest.mark.parametrize("value", [None, ""])
def test_missing_metadata(field: str, value: Optional[str]) -> None:
    with pytest.raises(MissingMetadata):
        validate_upload("notes.txt", _fields(**{field: value}))


def test_non_pdf_extension_is_rejected() -> None:
    with pytest.raises(InvalidFileType) as excinfo:
        validate_upload("notes.txt", _fields())

    assert excinfo.value.status_code == 400


def test_handler_rejects_unsluggable_metadata_before_writing(temp_config: AppConfig) -> None:
    handler = UploadHandler(StoragePlacer(temp_config.storage_root))

    with pytest.raises(InvalidMetadata):
        handler.handle("notes.pdf", io.BytesIO(b"%PDF"), _fields(carrera="   "))

    assert list(temp_config.storage_root.iterdir()) == []


def test_handler_stores_upload_and_attaches_analysis(temp_config: AppConfig) -> None:
    handler = UploadHandler(StoragePlacer(temp_config.storage_root))

    outcome = handler.handle("notes.pdf", io.BytesIO(b"%PDF-1.4"), _fields())
    payload = outcome.to_dict()

    assert payload["mensaje"] == "Archivo recibido y guardado correctamente"
    assert payload["storage"]["publicUrl"] == "/uploads/ingenieria/semestre-3/calculo-i/ana-lopez.pdf"
    assert outcome.document.stored_path.read_bytes() == b"%PDF-1.4"
    assert payload["resultados"]["resumen"]
    assert payload["resultados"]["flashcards"][0].keys() == {"pregunta", "respuesta"}
    assert payload["resultados"]["examen"][0]["correcta"] == 0


def test_handler_wraps_unexpected_failures(temp_config: AppConfig) -> None:
    def broken_analysis():
        raise RuntimeError("boom")

    handler = UploadHandler(
        StoragePlacer(temp_config.storage_root),
        analysis_factory=broken_analysis,
    )

    with pytest.raises(InternalError) as excinfo:
        handler.handle("notes.pdf", io.BytesIO(b"%PDF"), _fields())

    assert excinfo.value.status_code == 500
    assert str(excinfo.value) == "Error al procesar el archivo"
