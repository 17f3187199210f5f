"""
Entry deduplication against already saved articles.

Lookups happen in three steps:
1. A bounded in-memory cache of URLs confirmed during this run
2. A storage lookup by URL fingerprint (indexed, cheap)
3. A full comparison of the stored normalized URL, so a fingerprint
   collision never causes an entry to be skipped

The storage unique constraint stays the source of truth; this index only
avoids refetching and rewriting entries that are known to exist.
"""

from __future__ import annotations

from collections import OrderedDict

from .protocols import ArticleStorage
from .urls import url_fingerprint


class DedupIndex:
    """Answers whether an owner already has an entry for a normalized URL.

    Attributes:
        store: Storage used for the fingerprint lookup
        cache_size: Maximum number of URLs kept in memory
    """

    def __init__(self, store: ArticleStorage, cache_size: int = 1024):
        self.store = store
        self.cache_size = max(0, cache_size)
        self._recent: OrderedDict[tuple[int, str], None] = OrderedDict()

    def exists(self, owner_id: int, normalized_url: str) -> bool:
        """Check whether an equivalent entry is already saved.

        Args:
            owner_id: The account to check
            normalized_url: Output of ``normalize_url``

        Returns:
            True if an entry with the same normalized URL exists
        """
        key = (owner_id, normalized_url)
        if key in self._recent:
            self._recent.move_to_end(key)
            return True

        candidates = self.store.find_urls_by_hash(owner_id, url_fingerprint(normalized_url))
        if normalized_url in candidates:
            self._remember_key(key)
            return True
        return False

    def remember(self, owner_id: int, normalized_url: str) -> None:
        """Record an entry that was just saved for this owner."""
        self._remember_key((owner_id, normalized_url))

    def _remember_key(self, key: tuple[int, str]) -> None:
        if self.cache_size == 0:
            return
        self._recent[key] = None
        self._recent.move_to_end(key)
        while len(self._recent) > self.cache_size:
            self._recent.popitem(last=False)
