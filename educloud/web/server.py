"""FastAPI application exposing uploads, listings and flashcard generation."""

from __future__ import annotations

import asyncio
import contextvars
import logging
import time
import uuid
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Receive, Scope, Send

from ..config import AppConfig
from ..services.errors import (
    EduCloudError,
    ExternalServiceError,
    FileNotFound,
    InternalError,
    MissingFile,
)
from ..services.events import emit_structured_event
from ..services.flashcards import FlashcardGenerator, FlashcardService, GeminiFlashcardGenerator
from ..services.storage import PDF_SUFFIX, StoragePlacer, WriteGuard
from ..services.uploads import (
    NAME_FIELD,
    PROGRAM_FIELD,
    SEMESTER_FIELD,
    SUBJECT_FIELD,
    UploadHandler,
)

T = TypeVar("T")


_REQUEST_ID_VAR: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "educloud_request_id",
    default=None,
)

_INVALID_REQUEST_MESSAGE = "Solicitud inválida"


def _new_correlation_id() -> str:
    return uuid.uuid4().hex


def _collect_correlation_context() -> Dict[str, str]:
    request_id = _REQUEST_ID_VAR.get()
    return {"request_id": request_id} if request_id else {}


class RequestContextMiddleware:
    """Assign a correlation identifier to each request and expose it via contextvars."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_id = _new_correlation_id()
        scope_state = scope.get("state")
        if scope_state is None:
            scope_state = {}
            scope["state"] = scope_state
        if isinstance(scope_state, dict):
            scope_state["request_id"] = request_id
        else:
            setattr(scope_state, "request_id", request_id)

        request_token = _REQUEST_ID_VAR.set(request_id)
        try:
            await self.app(scope, receive, send)
        finally:
            _REQUEST_ID_VAR.reset(request_token)


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that injects correlation context into records."""

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> tuple[Any, Dict[str, Any]]:  # type: ignore[override]
        extra: Dict[str, Any] = dict(self.extra)
        provided = kwargs.get("extra")
        if isinstance(provided, dict):
            extra.update(provided)
        for key, value in _collect_correlation_context().items():
            extra.setdefault(key, value)
        kwargs["extra"] = extra
        return msg, kwargs


LOGGER = ContextualLoggerAdapter(logging.getLogger(__name__), {})
EVENT_LOGGER = ContextualLoggerAdapter(logging.getLogger("educloud.web.events"), {})


def _log_event(message: str, *, duration_ms: Optional[float] = None, **context: Any) -> None:
    emit_structured_event(
        "APP_EVENT",
        message,
        payload=context,
        correlation=_collect_correlation_context(),
        duration_ms=duration_ms,
        logger=EVENT_LOGGER,
    )


def normalize_root_path(value: Optional[str]) -> str:
    if value is None:
        return ""
    normalized = value.strip()
    if not normalized:
        return ""
    if not normalized.startswith("/"):
        normalized = f"/{normalized}"
    return normalized.rstrip("/")


async def _run_blocking(
    operation: Callable[..., T],
    *args: Any,
    timeout: float,
    label: str,
    timeout_error: Type[EduCloudError],
    on_timeout: Optional[Callable[[], bool]] = None,
) -> T:
    """Run ``operation`` in a worker thread, bounded by ``timeout`` seconds.

    The thread itself cannot be interrupted. When ``on_timeout`` is given it is
    called to abandon the pending work; a ``False`` result means the work
    already took effect, so its result is awaited and returned instead.
    """

    start = time.perf_counter()
    future = asyncio.ensure_future(asyncio.to_thread(operation, *args))
    try:
        result = await asyncio.wait_for(asyncio.shield(future), timeout=timeout)
    except asyncio.TimeoutError as error:
        if on_timeout is not None and not on_timeout():
            LOGGER.warning("%s finished after its %.1fs deadline", label, timeout)
            result = await future
        else:
            LOGGER.error("Timed out after %.1fs while running %s", timeout, label)
            future.add_done_callback(_discard_abandoned_result)
            raise timeout_error() from error
    _log_event(f"Completed {label}", duration_ms=(time.perf_counter() - start) * 1000.0)
    return result


def _discard_abandoned_result(future: asyncio.Future[Any]) -> None:
    if not future.cancelled() and future.exception() is not None:
        LOGGER.info("Abandoned operation ended with %s", future.exception())


class FlashcardRequest(BaseModel):
    file: Optional[str] = None


def create_app(
    config: AppConfig,
    *,
    placer: Optional[StoragePlacer] = None,
    flashcard_generator: Optional[FlashcardGenerator] = None,
    root_path: str | None = None,
) -> FastAPI:
    """Return a configured FastAPI application."""

    normalized_root = normalize_root_path(root_path)
    app = FastAPI(
        title="EduCloud IA",
        description="Store academic PDFs and turn them into study material",
        root_path=normalized_root,
    )
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if placer is None:
        placer = StoragePlacer(config.storage_root, public_prefix=config.public_prefix)
    if flashcard_generator is None:
        flashcard_generator = GeminiFlashcardGenerator(
            config.gemini_model,
            language=config.flashcard_language,
            count=config.flashcard_count,
            timeout_seconds=config.request_timeout_seconds,
            api_key_env=config.api_key_env,
        )
    upload_handler = UploadHandler(placer)
    flashcard_service = FlashcardService(
        placer,
        flashcard_generator,
        max_chars=config.max_text_chars,
    )
    app.state.placer = placer
    app.state.upload_handler = upload_handler
    app.state.flashcard_service = flashcard_service
    timeout = float(config.request_timeout_seconds)

    @app.exception_handler(EduCloudError)
    async def _handle_service_error(request: Request, error: EduCloudError) -> JSONResponse:
        level = logging.ERROR if error.status_code >= 500 else logging.INFO
        LOGGER.log(
            level,
            "%s %s failed with %s: %s",
            request.method,
            request.url.path,
            error.__class__.__name__,
            error,
        )
        return JSONResponse({"error": error.message}, status_code=error.status_code)

    @app.exception_handler(RequestValidationError)
    async def _handle_validation_error(
        request: Request, error: RequestValidationError
    ) -> JSONResponse:
        LOGGER.info("Rejected malformed request to %s: %s", request.url.path, error.errors())
        return JSONResponse({"error": _INVALID_REQUEST_MESSAGE}, status_code=400)

    @app.exception_handler(StarletteHTTPException)
    async def _handle_http_error(request: Request, error: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            {"error": str(error.detail)},
            status_code=error.status_code,
            headers=getattr(error, "headers", None),
        )

    @app.get("/health")
    async def health_check() -> Dict[str, Any]:
        return {
            "ok": True,
            "status": "healthy",
            "storage_root": str(placer.storage_root),
        }

    @app.post("/upload")
    async def upload_document(
        file: Optional[UploadFile] = File(None),
        nombre: Optional[str] = Form(None),
        carrera: Optional[str] = Form(None),
        semestre: Optional[str] = Form(None),
        asignatura: Optional[str] = Form(None),
    ) -> Dict[str, Any]:
        filename = file.filename if file is not None else None
        _log_event("Uploading document", filename=filename)
        fields = {
            NAME_FIELD: nombre,
            PROGRAM_FIELD: carrera,
            SEMESTER_FIELD: semestre,
            SUBJECT_FIELD: asignatura,
        }
        try:
            metadata = upload_handler.prepare(filename, fields)
            if file is None:
                raise MissingFile()
            guard = WriteGuard()
            outcome = await _run_blocking(
                upload_handler.store,
                metadata,
                file.file,
                guard,
                timeout=timeout,
                label="upload storage",
                timeout_error=InternalError,
                on_timeout=guard.cancel,
            )
        except EduCloudError:
            raise
        except Exception as error:
            LOGGER.exception("Unexpected failure while storing upload %s", filename)
            raise InternalError() from error
        finally:
            if file is not None:
                await file.close()
        return outcome.to_dict()

    @app.get("/files")
    def list_files() -> List[Dict[str, str]]:
        return [entry.to_dict() for entry in placer.iter_documents()]

    @app.post("/generate-flashcards")
    async def generate_flashcards(payload: FlashcardRequest) -> Dict[str, Any]:
        if not payload.file:
            raise MissingFile("Indica el archivo para generar flashcards")
        _log_event("Generating flashcards", file=payload.file)
        try:
            flashcards = await _run_blocking(
                flashcard_service.generate_for,
                payload.file,
                timeout=timeout,
                label="flashcard generation",
                timeout_error=ExternalServiceError,
            )
        except EduCloudError:
            raise
        except Exception as error:
            LOGGER.exception("Unexpected failure while generating flashcards for %s", payload.file)
            raise ExternalServiceError() from error
        return {"flashcards": flashcards}

    @app.get(placer.public_prefix + "/{path:path}")
    def serve_upload(path: str) -> FileResponse:
        target = placer.resolve(path)
        if target.suffix.lower() != PDF_SUFFIX or not target.is_file():
            raise FileNotFound()
        return FileResponse(target)

    return app


__all__ = [
    "ContextualLoggerAdapter",
    "RequestContextMiddleware",
    "create_app",
    "normalize_root_path",
]
