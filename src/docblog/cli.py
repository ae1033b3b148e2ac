"""Command line interface for docblog."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from docblog.ai.description import GeminiDescriber, GeminiOptions
from docblog.config import AppConfig, load_config
from docblog.content.frontmatter import FRONTMATTER_FORMATS
from docblog.drive.service import DriveService, DriveServiceError
from docblog.index.store import AmbiguousIndexError, MetadataIndexStore, merge_records
from docblog.publisher import Publisher

console = Console()
app = typer.Typer(help="docblog - publish Google Docs as static-site posts")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _load_config(path: Optional[Path]) -> AppConfig:
    try:
        return load_config(path)
    except (OSError, ValueError) as exc:
        console.print(f"[red]Cannot load config: {exc}[/red]")
        raise typer.Exit(code=1) from exc


def _ensure_output_dirs(config: AppConfig) -> None:
    config.posts_output.mkdir(parents=True, exist_ok=True)
    config.assets_output.mkdir(parents=True, exist_ok=True)


ConfigOption = typer.Option(None, "--config", help="JSON config file", envvar="DOCBLOG_CONFIG")
CredentialsOption = typer.Option(
    None, "--credentials", help="file with Google Cloud credentials", envvar="DOCBLOG_GCLOUD_CREDENTIALS"
)
VerboseOption = typer.Option(False, "--verbose", "-v", help="Verbose logging")


@app.command()
def publish(
    drive_dir_id: Optional[str] = typer.Argument(
        None, help="Google Drive directory with blog posts.", envvar="DOCBLOG_DRIVE_DIR_ID"
    ),
    config_path: Optional[Path] = ConfigOption,
    credentials: Optional[Path] = CredentialsOption,
    posts_output: Optional[Path] = typer.Option(
        None, "--posts-output", help="HTML output path", envvar="DOCBLOG_POSTS_OUTPUT"
    ),
    assets_output: Optional[Path] = typer.Option(
        None, "--assets-output", help="asset output path", envvar="DOCBLOG_ASSETS_OUTPUT"
    ),
    assets_prefix: Optional[str] = typer.Option(
        None, "--assets-prefix", help="asset path prefix (html)", envvar="DOCBLOG_ASSETS_PREFIX"
    ),
    fmt: Optional[str] = typer.Option(
        None, "--format", help="frontmatter format: yaml or json", envvar="DOCBLOG_FORMAT"
    ),
    layout: Optional[str] = typer.Option(
        None, "--layout", help="layout written to the frontmatter", envvar="DOCBLOG_LAYOUT"
    ),
    workers: Optional[int] = typer.Option(
        None, "--workers", help="rewrite worker threads per document", envvar="DOCBLOG_WORKERS"
    ),
    gemini_api_key: Optional[str] = typer.Option(
        None, "--gemini-api-key", help="API key for Gemini", envvar="GEMINI_API_KEY"
    ),
    gemini_model: Optional[str] = typer.Option(
        None, "--gemini-model", help="Gemini model used for descriptions", envvar="GEMINI_MODEL"
    ),
    gemini_prompt: Optional[str] = typer.Option(
        None, "--gemini-prompt", help="prompt used to generate descriptions",
        envvar="GEMINI_DESCRIPTION_PROMPT",
    ),
    verbose: bool = VerboseOption,
) -> None:
    """Export every document of a Drive folder as a post."""
    _setup_logging(verbose)
    config = _load_config(config_path).with_overrides(
        drive_dir_id=drive_dir_id,
        credentials_path=credentials,
        posts_output=posts_output,
        assets_output=assets_output,
        assets_prefix=assets_prefix,
        frontmatter_format=fmt,
        layout=layout,
        max_workers=workers,
        gemini_api_key=gemini_api_key,
        gemini_model=gemini_model,
        gemini_prompt=gemini_prompt,
    )
    if config.frontmatter_format not in FRONTMATTER_FORMATS:
        raise typer.BadParameter(f"Unsupported frontmatter format: {config.frontmatter_format}")
    if config.max_workers < 1:
        raise typer.BadParameter("--workers must be at least 1")
    if not config.drive_dir_id:
        raise typer.BadParameter("a Drive directory id is required")
    folder_id = config.drive_dir_id

    _ensure_output_dirs(config)

    describe = None
    if config.gemini_api_key:
        describe = GeminiDescriber(
            GeminiOptions(
                api_key=config.gemini_api_key,
                model=config.gemini_model,
                prompt=config.gemini_prompt,
            )
        )

    try:
        service = DriveService.from_credentials_file(config.credentials_path)
        store = MetadataIndexStore(service, folder_id)
        publisher = Publisher(
            service,
            store,
            posts_output=config.posts_output,
            assets_output=config.assets_output,
            assets_prefix=config.assets_prefix,
            frontmatter_format=config.frontmatter_format,
            layout=config.layout,
            max_workers=config.max_workers,
            describe=describe,
        )
        console.print(f"Publishing folder [bold]{folder_id}[/bold]...")
        stats = publisher.publish(folder_id)
    except (DriveServiceError, AmbiguousIndexError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    console.print(
        f"Published: {stats.published}, hidden: {stats.hidden}, "
        f"failed: {stats.failed}, assets: {stats.assets}"
    )


@app.command()
def index(
    drive_dir_id: str = typer.Argument(..., help="Google Drive directory with blog posts."),
    config_path: Optional[Path] = ConfigOption,
    credentials: Optional[Path] = CredentialsOption,
    sync: bool = typer.Option(False, "--sync", help="Write the merged records back to the index"),
    verbose: bool = VerboseOption,
) -> None:
    """Show the merged metadata index of a Drive folder.

    The index grid is only created when ``--sync`` writes it back.
    """
    _setup_logging(verbose)
    config = _load_config(config_path).with_overrides(credentials_path=credentials)

    try:
        service = DriveService.from_credentials_file(config.credentials_path)
        store = MetadataIndexStore(service, drive_dir_id)
        contents = store.read_all(create=sync)
        listed = [descriptor.to_record() for descriptor in service.list_documents(drive_dir_id)]
        records = merge_records(listed, contents.records)
        if sync:
            store.write_all(records)
    except (DriveServiceError, AmbiguousIndexError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    if not records:
        console.print("[yellow]No documents found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Id")
    table.add_column("Title")
    table.add_column("Date")
    table.add_column("Visible")
    table.add_column("Description")

    for record in records:
        date = record.created.strftime("%Y-%m-%d") if record.created else ""
        table.add_row(
            record.doc_id,
            record.title,
            date,
            "yes" if record.is_visible else "no",
            record.description[:80],
        )

    console.print(table)
    for error in contents.errors:
        console.print(f"[yellow]Row {error.row_number} ({error.doc_id}): {error.message}[/yellow]")
