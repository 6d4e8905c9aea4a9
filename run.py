"""Entry-point for the EduCloud service."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
import uvicorn
from dotenv import load_dotenv

from educloud.bootstrap import initialize_app
from educloud.config import AppConfig
from educloud.logging_utils import build_default_handlers, configure_logging
from educloud.services.errors import EduCloudError
from educloud.services.flashcards import FlashcardService, GeminiFlashcardGenerator
from educloud.services.storage import StoragePlacer
from educloud.services.uploads import (
    NAME_FIELD,
    PROGRAM_FIELD,
    SEMESTER_FIELD,
    SUBJECT_FIELD,
    UploadHandler,
)
from educloud.ui import StorageOverviewUI
from educloud.web import create_app
from educloud.web.server import normalize_root_path


LOGGER = logging.getLogger("educloud.cli")


cli = typer.Typer(add_completion=False, help="EduCloud management commands")


DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000


def _prepare_logging(storage_root: Path) -> None:
    configure_logging(handlers=build_default_handlers(storage_root))


def _build_placer(config: AppConfig) -> StoragePlacer:
    return StoragePlacer(config.storage_root, public_prefix=config.public_prefix)


@cli.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """Launch the web server when no explicit command is provided."""

    load_dotenv()
    if ctx.invoked_subcommand is None:
        ctx.invoke(serve, host=DEFAULT_HOST, port=DEFAULT_PORT, root_path=None)


@cli.command()
def serve(
    host: str = typer.Option(DEFAULT_HOST, help="Host interface for the web server"),
    port: int = typer.Option(DEFAULT_PORT, help="Port for the web server"),
    root_path: Optional[str] = typer.Option(
        None,
        help="Prefix the application expects when mounted behind a proxy",
        envvar="EDUCLOUD_ROOT_PATH",
    ),
) -> None:
    """Run the FastAPI upload service."""

    app_config = initialize_app()
    _prepare_logging(app_config.storage_root)

    normalized_root = normalize_root_path(root_path)
    app = create_app(app_config, root_path=normalized_root)

    server_config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_config=None,
        root_path=normalized_root,
    )
    server = uvicorn.Server(server_config)

    LOGGER.info("EduCloud IA listening on http://%s:%s%s/", host, port, normalized_root)
    server.run()


@cli.command()
def ingest(
    pdf: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        help="Path to the PDF that should be stored",
    ),
    name: str = typer.Option(..., "--name", help="Student name (nombre)"),
    program: str = typer.Option(..., "--program", help="Degree program (carrera)"),
    semester: str = typer.Option(..., "--semester", help="Semester (semestre)"),
    subject: str = typer.Option(..., "--subject", help="Subject (asignatura)"),
) -> None:
    """Store a local PDF exactly as an HTTP upload would."""

    config = initialize_app()
    _prepare_logging(config.storage_root)

    handler = UploadHandler(_build_placer(config))
    fields = {
        NAME_FIELD: name,
        PROGRAM_FIELD: program,
        SEMESTER_FIELD: semester,
        SUBJECT_FIELD: subject,
    }
    try:
        with pdf.open("rb") as source:
            outcome = handler.handle(pdf.name, source, fields)
    except EduCloudError as error:
        typer.echo(f"Upload failed: {error}")
        raise typer.Exit(code=1) from error

    typer.echo(outcome.message)
    typer.echo(f"  Stored at: {outcome.document.stored_path}")
    typer.echo(f"  Public URL: {outcome.document.public_url}")


@cli.command()
def files() -> None:
    """Render an overview of the stored PDFs."""

    config = initialize_app()
    StorageOverviewUI(_build_placer(config).iter_documents()).run()


@cli.command()
def flashcards(
    path: str = typer.Argument(..., help="Stored PDF path relative to the storage root"),
) -> None:
    """Generate flashcards for a stored PDF and print them as JSON."""

    config = initialize_app()
    _prepare_logging(config.storage_root)

    generator = GeminiFlashcardGenerator(
        config.gemini_model,
        language=config.flashcard_language,
        count=config.flashcard_count,
        timeout_seconds=config.request_timeout_seconds,
        api_key_env=config.api_key_env,
    )
    service = FlashcardService(_build_placer(config), generator, max_chars=config.max_text_chars)
    try:
        cards = service.generate_for(path)
    except EduCloudError as error:
        typer.echo(f"Flashcard generation failed: {error}")
        raise typer.Exit(code=1) from error

    typer.echo(json.dumps(cards, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    cli()
