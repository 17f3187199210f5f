"""
Command-line interface for readlater-import.

Uses Typer to provide the import command and the small account helpers it
needs. Supports loading .env files for database configuration.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import peewee
import typer
from rich.console import Console

from .config import load_config
from .core.errors import OwnerNotFoundError, ReadlaterImportError, SourceNotFoundError
from .core.protocols import AccountResolver
from .core.types import ImportSession, Owner, SessionContext, SourceFormat
from .logging_utils import setup_logging
from .runner import run_import
from .storage import ArticleStore

try:
    from dotenv import load_dotenv
except Exception:  # noqa: BLE001
    load_dotenv = None

app = typer.Typer(add_completion=False, help="Import bookmark and article exports.")
console = Console()

IMPORTER_HELP = "The importer to use: " + ", ".join(member.value for member in SourceFormat)


def _timestamp() -> str:
    now = datetime.now()
    return f"{now:%d-%m-%Y} {now.hour}:{now:%M:%S}"


def _require_owner(resolver: AccountResolver, identifier: str, by_id: bool = False) -> Owner:
    owner = resolver.resolve_owner(identifier, by_id=by_id)
    if owner is None:
        raise OwnerNotFoundError(identifier)
    return owner


@app.command("import")
def import_entries(
    username: str = typer.Argument(..., help="User to populate"),
    filepath: Path = typer.Argument(..., help="Path to the export file"),
    importer: str | None = typer.Option(None, "--importer", "-i", help=IMPORTER_HELP),
    mark_as_read: bool = typer.Option(False, "--mark-as-read", help="Mark all entries as read"),
    use_user_id: bool = typer.Option(
        False, "--use-user-id", help="Use user id instead of username to find account"
    ),
    disable_content_update: bool = typer.Option(
        False, "--disable-content-update", help="Disable fetching updated content from URL"
    ),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, dir_okay=False),
    database: Path | None = typer.Option(
        None, "--database", envvar="READLATER_DATABASE", help="SQLite database file."
    ),
    progress: bool = typer.Option(True, "--progress/--no-progress"),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Import entries from an export file into a user's saved articles.

    Args:
        username: Username (or numeric id with --use-user-id) of the target account
        filepath: Path to the export file
        importer: Export format selector, defaults to the configured one (v1)
        mark_as_read: Force every imported entry to archived
        use_user_id: Resolve the account by numeric id
        disable_content_update: Keep export content instead of fetching live pages
        config: Optional path to YAML config file
        database: SQLite database file, overrides the config
        progress: Whether to show a progress spinner
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    if load_dotenv is not None:
        load_dotenv()

    cfg = load_config(str(config) if config else None)
    if log_level:
        cfg.logging.level = log_level
    logger = setup_logging(cfg.logging)

    console.print(f"Start : {_timestamp()} ---")
    try:
        source_format = SourceFormat.from_selector(importer or cfg.importer.default_format)
    except ValueError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=2)

    try:
        if not filepath.is_file():
            raise SourceNotFoundError(filepath)

        with ArticleStore.open(database or Path(cfg.storage.database)) as store:
            owner = _require_owner(store, username, by_id=use_user_id)

            context = SessionContext(owner=owner, site_headers=store.site_headers(owner.id))
            session = ImportSession(
                owner_id=owner.id,
                file_path=filepath,
                format=source_format,
                mark_as_read=mark_as_read,
                disable_content_update=disable_content_update,
            )
            summary = run_import(
                session, store, cfg, context, show_progress=progress, console=console, logger=logger
            )
    except ReadlaterImportError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        console.print(f"End : {_timestamp()} ---")
        raise typer.Exit(code=1)

    console.print(f"[green]{summary.imported} imported[/green]")
    console.print(f"[yellow]{summary.skipped} already saved[/yellow]")
    if summary.failed:
        console.print(f"[red]{summary.failed} failed[/red]")
    console.print(f"End : {_timestamp()} ---")


@app.command("owner-add")
def owner_add(
    username: str = typer.Argument(..., help="Username of the new account"),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, dir_okay=False),
    database: Path | None = typer.Option(
        None, "--database", envvar="READLATER_DATABASE", help="SQLite database file."
    ),
):
    """Create an account that exports can be imported into."""
    cfg = load_config(str(config) if config else None)
    with ArticleStore.open(database or Path(cfg.storage.database)) as store:
        try:
            owner = store.create_owner(username)
        except peewee.IntegrityError:
            console.print(f'[red]Error:[/red] User "{username}" already exists')
            raise typer.Exit(code=1)
    console.print(f"Created user {owner.username} (id {owner.id})")


@app.command("site-header")
def site_header(
    username: str = typer.Argument(..., help="Account the header belongs to"),
    host: str = typer.Argument(..., help="Host name, e.g. www.example.com"),
    name: str = typer.Argument(..., help="Header name, e.g. Cookie"),
    value: str = typer.Argument(..., help="Header value"),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, dir_okay=False),
    database: Path | None = typer.Option(
        None, "--database", envvar="READLATER_DATABASE", help="SQLite database file."
    ),
):
    """Register a request header sent when refreshing pages of a host.

    Used for sites that only serve full articles to logged-in readers.
    """
    cfg = load_config(str(config) if config else None)
    with ArticleStore.open(database or Path(cfg.storage.database)) as store:
        try:
            owner = _require_owner(store, username)
        except OwnerNotFoundError as exc:
            console.print(f"[red]Error:[/red] {exc}")
            raise typer.Exit(code=1)
        store.set_site_header(owner.id, host, name, value)
    console.print(f"Saved {name} header for {host}")


if __name__ == "__main__":
    app()
