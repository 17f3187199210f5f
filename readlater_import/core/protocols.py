"""Contracts the importer expects from its collaborators."""

from __future__ import annotations

from typing import Protocol

from .types import CanonicalEntry, InsertResult, Owner


class ArticleStorage(Protocol):
    """Persistence capability used by the importer.

    Implementations must enforce uniqueness of ``(owner_id, normalized_url)``
    atomically and report a duplicate as ``InsertOutcome.DUPLICATE`` rather
    than a generic failure. Loss of the backing store is reported by raising
    ``StorageUnavailableError``.
    """

    def find_urls_by_hash(self, owner_id: int, url_hash: str) -> list[str]: ...

    def try_insert(self, owner_id: int, entry: CanonicalEntry) -> InsertResult: ...


class AccountResolver(Protocol):
    def resolve_owner(self, identifier: str, by_id: bool = False) -> Owner | None: ...
