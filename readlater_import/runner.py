"""
Import run orchestration.

One run goes through these stages for every raw record of the export:
1. Adapt the record to a CanonicalEntry (format specific)
2. Apply the mark-as-read override
3. Skip entries the owner already has (dedup pre-check)
4. Refresh content from the live page (optional)
5. Insert, treating a write-time duplicate like a pre-check hit

Per-entry problems only move the counters. A missing source file, an
invalid export container or lost storage abort the whole run.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
import logging
from typing import Any, Callable, TextIO

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from .config import AppConfig
from .core.dedup import DedupIndex
from .core.errors import (
    EntryAdaptError,
    FatalConfigurationError,
    FatalParseError,
    SourceNotFoundError,
    StorageUnavailableError,
)
from .core.protocols import ArticleStorage
from .core.types import CanonicalEntry, ImportSession, InsertOutcome, RunSummary, SessionContext
from .fetch.refresher import ContentRefresher
from .input import binding_for
from .logging_utils import get_logger, log_event


class ImportState(str, Enum):
    CONFIGURED = "configured"
    PARSING = "parsing"
    FINISHED = "finished"
    FATAL_ABORTED = "fatal_aborted"


@dataclass
class _Counters:
    imported: int = 0
    skipped: int = 0
    failed: int = 0

    def freeze(self) -> RunSummary:
        return RunSummary(**asdict(self))


class Importer:
    """Runs one import of an export file into an owner's saved articles.

    An Importer is built from an immutable ImportSession and runs once.

    Attributes:
        session: Configuration of this run
        store: Persistence used for dedup lookups and inserts
        refresher: Content refresher, or None when refresh is disabled
        state: Current ImportState
    """

    def __init__(
        self,
        session: ImportSession,
        store: ArticleStorage,
        refresher: ContentRefresher | None = None,
        logger: logging.Logger | None = None,
        on_record: Callable[[RunSummary], None] | None = None,
        dedup_cache_size: int = 1024,
    ):
        self.session = session
        self.store = store
        self.refresher = refresher
        self.state = ImportState.CONFIGURED
        self._logger = logger or get_logger("importer")
        self._on_record = on_record
        self._binding = binding_for(session.format)
        self._dedup = DedupIndex(store, cache_size=dedup_cache_size)
        self._counters = _Counters()
        self._summary: RunSummary | None = None
        self._position = 0

    @property
    def summary(self) -> RunSummary:
        """Final counters; only available after run() returned."""
        if self._summary is None:
            raise RuntimeError("Import summary is only available after a successful run()")
        return self._summary

    def run(self) -> RunSummary:
        """Execute the import synchronously.

        Returns:
            The finalized RunSummary

        Raises:
            SourceNotFoundError: If the export file cannot be opened
            FatalParseError: If the export container is invalid for the format
            StorageUnavailableError: If the database stops working mid-run
            RuntimeError: If this importer already ran
        """
        if self.state is not ImportState.CONFIGURED:
            raise RuntimeError(f"Importer already used (state: {self.state.value})")

        try:
            self._run()
        except (FatalConfigurationError, FatalParseError) as exc:
            self.state = ImportState.FATAL_ABORTED
            log_event(
                self._logger,
                "Import aborted",
                level=logging.ERROR,
                event="import_aborted",
                input=str(self.session.file_path),
                error=str(exc),
                records_seen=self._position,
            )
            raise

        self.state = ImportState.FINISHED
        self._summary = self._counters.freeze()
        return self._summary

    def _run(self) -> None:
        path = self.session.file_path
        source = str(path)
        handle = self._open()
        try:
            with handle:
                records = self._binding.open_records(handle, source)
                self.state = ImportState.PARSING
                for record in records:
                    self._position += 1
                    self._process(record)
        except UnicodeDecodeError as exc:
            raise FatalParseError(source, f"file is not valid UTF-8 ({exc.reason})") from exc
        except OSError as exc:
            raise SourceNotFoundError(path, exc.strerror or str(exc)) from exc

    def _open(self) -> TextIO:
        path = self.session.file_path
        if not path.is_file():
            raise SourceNotFoundError(path)
        try:
            return open(path, "r", encoding="utf-8-sig", newline=self._binding.newline)
        except OSError as exc:
            raise SourceNotFoundError(path, exc.strerror or str(exc)) from exc

    def _process(self, record: Any) -> None:
        try:
            entry = self._binding.adapt(record)
        except EntryAdaptError as exc:
            self._fail(record, exc.reason)
            return
        except Exception as exc:  # noqa: BLE001
            self._fail(record, f"{type(exc).__name__}: {exc}")
            return

        if self.session.mark_as_read:
            entry.is_archived = True

        try:
            self._persist(entry)
        except StorageUnavailableError:
            raise
        except Exception as exc:  # noqa: BLE001
            self._fail(record, f"{type(exc).__name__}: {exc}", url=entry.url)
            return
        self._notify()

    def _persist(self, entry: CanonicalEntry) -> None:
        owner_id = self.session.owner_id
        if self._dedup.exists(owner_id, entry.normalized_url):
            self._counters.skipped += 1
            return

        if self.refresher is not None:
            self._refresh(entry)

        result = self.store.try_insert(owner_id, entry)
        if result.outcome is InsertOutcome.INSERTED:
            self._counters.imported += 1
            self._dedup.remember(owner_id, entry.normalized_url)
        elif result.outcome is InsertOutcome.DUPLICATE:
            self._counters.skipped += 1
        else:
            self._counters.failed += 1
            log_event(
                self._logger,
                "Entry not saved",
                level=logging.WARNING,
                event="entry_failed",
                position=self._position,
                url=entry.url,
                error=result.reason,
            )

    def _refresh(self, entry: CanonicalEntry) -> None:
        try:
            self.refresher.refresh(entry)
        except Exception as exc:  # noqa: BLE001
            log_event(
                self._logger,
                "Content refresh crashed, keeping export content",
                level=logging.WARNING,
                event="refresh_failed",
                url=entry.url,
                error=f"{type(exc).__name__}: {exc}",
            )

    def _fail(self, record: Any, reason: str, url: str | None = None) -> None:
        self._counters.failed += 1
        if url is None and isinstance(record, dict):
            url = next((str(record[key]) for key in _URL_KEYS if record.get(key)), None)
        log_event(
            self._logger,
            "Entry failed",
            level=logging.WARNING,
            event="entry_failed",
            position=self._position,
            url=url,
            error=reason,
        )
        self._notify()

    def _notify(self) -> None:
        if self._on_record is not None:
            self._on_record(self._counters.freeze())


_URL_KEYS = ("url", "uri", "href", "article__url")


def run_import(
    session: ImportSession,
    store: ArticleStorage,
    cfg: AppConfig,
    context: SessionContext,
    show_progress: bool = True,
    console: Console | None = None,
    logger: logging.Logger | None = None,
) -> RunSummary:
    """Run a complete import with optional progress display.

    Builds the content refresher unless the session disables content
    updates, then drives an Importer.

    Args:
        session: Configuration of the run
        store: Persistence for the owner's articles
        cfg: Application configuration (fetch, extract, import defaults)
        context: Acting identity, must belong to ``session.owner_id``
        show_progress: Whether to display a progress spinner
        console: Rich console for progress output (creates default if None)
        logger: Logger for events

    Returns:
        The finalized RunSummary
    """
    if context.owner.id != session.owner_id:
        raise ValueError("Session context does not belong to the session owner")

    logger = logger or get_logger()
    refresher = None
    if not session.disable_content_update:
        refresher = ContentRefresher(cfg.fetch, cfg.extract, context, logger=logger)

    log_event(
        logger,
        "Import start",
        event="import_start",
        input=str(session.file_path),
        format=session.format.value,
        owner=context.owner.username,
        mark_as_read=session.mark_as_read,
        content_update=refresher is not None,
    )

    if not show_progress:
        importer = Importer(
            session,
            store,
            refresher=refresher,
            logger=logger,
            dedup_cache_size=cfg.importer.dedup_cache_size,
        )
        summary = importer.run()
    else:
        console = console or Console()
        progress = Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            TextColumn("{task.fields[counts]}"),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        )
        with progress:
            task = progress.add_task("Importing", total=None, counts="")

            def _advance(counters: RunSummary) -> None:
                progress.update(
                    task,
                    counts=(
                        f"{counters.imported} imported, {counters.skipped} skipped, "
                        f"{counters.failed} failed"
                    ),
                )

            importer = Importer(
                session,
                store,
                refresher=refresher,
                logger=logger,
                on_record=_advance,
                dedup_cache_size=cfg.importer.dedup_cache_size,
            )
            summary = importer.run()

    log_event(
        logger,
        "Import complete",
        event="import_complete",
        imported=summary.imported,
        skipped=summary.skipped,
        failed=summary.failed,
        refreshed=refresher.stats.refreshed if refresher else 0,
        refresh_failed=refresher.stats.failed if refresher else 0,
    )
    return summary
