"""Deterministic placement of uploaded PDFs under the storage root."""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import tempfile
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, Iterator, Optional

from .errors import FileNotFound, InternalError
from .events import emit_file_event
from .naming import require_slug


LOGGER = logging.getLogger(__name__)

PDF_SUFFIX = ".pdf"
SEMESTER_PREFIX = "semestre-"

_COPY_CHUNK_SIZE = 1024 * 1024
_FILE_MODE = 0o644


@dataclass(frozen=True)
class UploadMetadata:
    """Academic metadata attached to an uploaded document."""

    name: str
    program: str
    semester: str
    subject: str


@dataclass(frozen=True)
class StoredDocument:
    """Location of a stored upload on disk and over HTTP."""

    stored_path: Path
    public_url: str

    def to_dict(self) -> Dict[str, str]:
        return {"storedPath": str(self.stored_path), "publicUrl": self.public_url}


@dataclass(frozen=True)
class StoredFileEntry:
    name: str
    path: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "path": self.path}


class DocumentListing:
    """Lazy view over the PDFs below a storage root.

    Each iteration walks the tree again, so the same listing object can be
    consumed repeatedly and always reflects the current state of the disk.
    """

    def __init__(self, storage_root: Path) -> None:
        self._storage_root = storage_root

    def __iter__(self) -> Iterator[StoredFileEntry]:
        root = self._storage_root
        if not root.is_dir():
            return
        yield from self._scan(root, root)

    def _scan(self, root: Path, directory: Path) -> Iterator[StoredFileEntry]:
        try:
            children = list(os.scandir(directory))
        except OSError as error:
            LOGGER.warning("Unable to scan storage directory %s: %s", directory, error)
            return
        for child in children:
            if child.is_dir(follow_symlinks=False):
                yield from self._scan(root, Path(child.path))
            elif child.is_file() and child.name.endswith(PDF_SUFFIX):
                relative = Path(child.path).relative_to(root).as_posix()
                yield StoredFileEntry(name=child.name, path=relative)


class WriteGuard:
    """Coordinate publishing a finished write with a caller that may give up on it.

    Whichever of :meth:`cancel` and :meth:`publish` runs first decides the
    outcome; once a write is published it can no longer be cancelled.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._published = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> bool:
        """Abandon the write. Returns ``False`` when it was already published."""

        with self._lock:
            if self._published:
                return False
            self._cancelled = True
            return True

    def publish(self, action: Callable[[], Any]) -> bool:
        with self._lock:
            if self._cancelled:
                return False
            action()
            self._published = True
            return True


class StoragePlacer:
    """Compute and persist the on-disk location for uploaded PDFs."""

    def __init__(self, storage_root: Path, *, public_prefix: str = "/uploads") -> None:
        self._storage_root = Path(storage_root).resolve()
        prefix = public_prefix.strip("/")
        self._public_prefix = f"/{prefix}" if prefix else ""

    @property
    def storage_root(self) -> Path:
        return self._storage_root

    @property
    def public_prefix(self) -> str:
        return self._public_prefix

    def plan(self, metadata: UploadMetadata) -> StoredDocument:
        """Return where *metadata* would be stored without touching the disk."""

        segments = (
            require_slug(metadata.program, "carrera"),
            SEMESTER_PREFIX + require_slug(metadata.semester, "semestre"),
            require_slug(metadata.subject, "asignatura"),
            require_slug(metadata.name, "nombre") + PDF_SUFFIX,
        )
        stored_path = self._storage_root.joinpath(*segments)
        relative = stored_path.relative_to(self._storage_root).as_posix()
        public_url = f"{self._public_prefix}/{relative}".replace("\\", "/")
        LOGGER.debug("Resolved upload location for %s -> %s", metadata, stored_path)
        return StoredDocument(stored_path=stored_path, public_url=public_url)

    def place(
        self,
        metadata: UploadMetadata,
        content: bytes,
        *,
        guard: Optional[WriteGuard] = None,
    ) -> StoredDocument:
        """Store *content* at the location derived from *metadata*."""

        document = self.plan(metadata)
        self._write(document.stored_path, lambda handle: handle.write(content), guard)
        return document

    def place_stream(
        self,
        metadata: UploadMetadata,
        source: BinaryIO,
        *,
        guard: Optional[WriteGuard] = None,
    ) -> StoredDocument:
        """Store the bytes readable from *source* at the location for *metadata*."""

        document = self.plan(metadata)
        if hasattr(source, "seek"):
            with contextlib.suppress(OSError, ValueError):
                source.seek(0)
        self._write(
            document.stored_path,
            lambda handle: shutil.copyfileobj(source, handle, length=_COPY_CHUNK_SIZE),
            guard,
        )
        return document

    def resolve(self, relative_path: str) -> Path:
        """Return the absolute path for *relative_path* inside the storage root."""

        cleaned = str(relative_path or "").replace("\\", "/")
        public_marker = f"{self._public_prefix}/" if self._public_prefix else ""
        if public_marker and cleaned.startswith(public_marker):
            cleaned = cleaned[len(public_marker):]
        cleaned = cleaned.lstrip("/")
        if not cleaned:
            raise FileNotFound()

        root_path = self._storage_root.resolve()
        candidate = (root_path / cleaned).resolve()
        try:
            candidate.relative_to(root_path)
        except ValueError as error:
            LOGGER.warning("Rejected path outside storage root: %s", relative_path)
            raise FileNotFound() from error
        return candidate

    def iter_documents(self) -> DocumentListing:
        return DocumentListing(self._storage_root)

    def _write(
        self,
        target: Path,
        writer: Callable[[BinaryIO], Any],
        guard: Optional[WriteGuard] = None,
    ) -> None:
        start = time.perf_counter()
        directory = target.parent
        existed_before = directory.exists()
        directory.mkdir(parents=True, exist_ok=True)
        if not existed_before:
            emit_file_event("create_directory", payload={"path": directory})

        if guard is not None and guard.cancelled:
            raise InternalError("La escritura del archivo fue cancelada")

        overwritten = target.exists()
        descriptor, temp_name = tempfile.mkstemp(
            prefix=f".{target.stem}-", suffix=".part", dir=directory
        )
        temp_path = Path(temp_name)
        try:
            with os.fdopen(descriptor, "wb") as handle:
                writer(handle)
            os.chmod(temp_path, _FILE_MODE)
            if guard is None:
                os.replace(temp_path, target)
            elif not guard.publish(lambda: os.replace(temp_path, target)):
                raise InternalError("La escritura del archivo fue cancelada")
        except BaseException:
            with contextlib.suppress(OSError):
                temp_path.unlink()
            raise

        duration_ms = (time.perf_counter() - start) * 1000.0
        emit_file_event(
            "write_upload",
            payload={
                "path": target,
                "bytes": target.stat().st_size,
                "overwritten": overwritten,
            },
            duration_ms=duration_ms,
        )
        if overwritten:
            LOGGER.info("Replaced existing upload at %s", target)


__all__ = [
    "DocumentListing",
    "PDF_SUFFIX",
    "StoragePlacer",
    "StoredDocument",
    "StoredFileEntry",
    "UploadMetadata",
    "WriteGuard",
]
