"""
SQLite-backed article storage.

``ArticleStore`` implements the persistence contract of the importer:
atomic inserts guarded by the ``(owner, normalized_url)`` unique index,
with duplicates reported separately from other write failures.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from typing import Any, Iterator

import peewee
from playhouse.shortcuts import model_to_dict

from ..core.errors import StorageUnavailableError
from ..core.types import CanonicalEntry, InsertOutcome, InsertResult, Owner
from .models import ALL_MODELS, Owner as OwnerRow, SavedArticle, SiteHeader, database_proxy

logger = logging.getLogger(__name__)

SQLITE_PRAGMAS = {
    "journal_mode": "wal",
    "foreign_keys": 1,
    # Concurrent imports for the same owner wait on each other instead of failing
    "busy_timeout": 5000,
}


class ArticleStore:
    """Saved-article persistence for import runs.

    Attributes:
        database: The peewee database the models are bound to
    """

    def __init__(self, database: peewee.Database):
        self.database = database
        database_proxy.initialize(database)
        with self._guard("create_tables"):
            database.create_tables(ALL_MODELS, safe=True)

    @classmethod
    def open(cls, path: str | Path) -> "ArticleStore":
        """Open (and create if needed) a SQLite database file."""
        path = Path(path)
        if path.parent and not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        return cls(peewee.SqliteDatabase(str(path), pragmas=SQLITE_PRAGMAS))

    def close(self) -> None:
        if not self.database.is_closed():
            self.database.close()

    def __enter__(self) -> "ArticleStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def resolve_owner(self, identifier: str | int, by_id: bool = False) -> Owner | None:
        """Find an owner by username, or by numeric id when ``by_id`` is set."""
        with self._guard("resolve_owner"):
            if by_id:
                try:
                    owner_id = int(str(identifier).strip())
                except ValueError:
                    return None
                row = OwnerRow.get_or_none(OwnerRow.id == owner_id)
            else:
                row = OwnerRow.get_or_none(OwnerRow.username == str(identifier))
        if row is None:
            return None
        return Owner(id=row.id, username=row.username)

    def create_owner(self, username: str) -> Owner:
        """Create an owner account.

        Raises:
            peewee.IntegrityError: If the username is already taken
        """
        with self._guard("create_owner"):
            row = OwnerRow.create(username=username)
        return Owner(id=row.id, username=row.username)

    def find_urls_by_hash(self, owner_id: int, url_hash: str) -> list[str]:
        with self._guard("find_urls_by_hash"):
            query = SavedArticle.select(SavedArticle.normalized_url).where(
                (SavedArticle.owner == owner_id) & (SavedArticle.url_hash == url_hash)
            )
            return [row.normalized_url for row in query]

    def exists(self, owner_id: int, normalized_url: str) -> bool:
        with self._guard("exists"):
            return (
                SavedArticle.select()
                .where(
                    (SavedArticle.owner == owner_id)
                    & (SavedArticle.normalized_url == normalized_url)
                )
                .exists()
            )

    def try_insert(self, owner_id: int, entry: CanonicalEntry) -> InsertResult:
        """Insert an entry unless the owner already has its normalized URL.

        Returns:
            InsertResult with INSERTED, DUPLICATE, or FAILED and a reason

        Raises:
            StorageUnavailableError: If the database itself cannot be used
        """
        try:
            with self.database.atomic():
                SavedArticle.create(
                    owner=owner_id,
                    url=entry.url,
                    normalized_url=entry.normalized_url,
                    url_hash=entry.fingerprint,
                    title=entry.display_title,
                    content=entry.content or "",
                    tags_json=json.dumps(sorted(entry.tags), ensure_ascii=False),
                    is_archived=entry.is_archived,
                    is_starred=entry.is_starred,
                    language=entry.language,
                    preview_picture=entry.preview_picture,
                    source_format=entry.source_format.value,
                    created_at=_naive_utc(entry.created_at),
                )
        except peewee.IntegrityError as exc:
            if _is_unique_violation(exc):
                return InsertResult(InsertOutcome.DUPLICATE)
            return InsertResult(InsertOutcome.FAILED, reason=str(exc))
        except (peewee.OperationalError, peewee.InterfaceError) as exc:
            raise StorageUnavailableError(f"Storage unavailable during insert: {exc}") from exc
        except peewee.DatabaseError as exc:
            return InsertResult(InsertOutcome.FAILED, reason=str(exc))
        return InsertResult(InsertOutcome.INSERTED)

    def count(self, owner_id: int) -> int:
        with self._guard("count"):
            return SavedArticle.select().where(SavedArticle.owner == owner_id).count()

    def list_articles(self, owner_id: int) -> list[dict[str, Any]]:
        """Return an owner's articles in insertion order, tags decoded."""
        with self._guard("list_articles"):
            rows = (
                SavedArticle.select()
                .where(SavedArticle.owner == owner_id)
                .order_by(SavedArticle.id)
            )
            articles = []
            for row in rows:
                data = model_to_dict(row, recurse=False)
                data["tags"] = json.loads(data.pop("tags_json") or "[]")
                articles.append(data)
            return articles

    def site_headers(self, owner_id: int) -> dict[str, dict[str, str]]:
        """Return the owner's per-host request headers keyed by host."""
        headers: dict[str, dict[str, str]] = {}
        with self._guard("site_headers"):
            for row in SiteHeader.select().where(SiteHeader.owner == owner_id):
                headers.setdefault(row.host, {})[row.name] = row.value
        return headers

    def set_site_header(self, owner_id: int, host: str, name: str, value: str) -> None:
        with self._guard("set_site_header"):
            SiteHeader.insert(
                owner=owner_id,
                host=host.strip().lower(),
                name=name.strip(),
                value=value,
            ).on_conflict_replace().execute()

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except (peewee.OperationalError, peewee.InterfaceError) as exc:
            logger.error("Storage operation %s failed: %s", operation, exc)
            raise StorageUnavailableError(f"Storage unavailable during {operation}: {exc}") from exc


def _is_unique_violation(exc: peewee.IntegrityError) -> bool:
    return "unique" in str(exc).lower()


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
