"""
Parsers for this application's own JSON exports.

Two schema versions exist. Both are a top-level JSON array of entries.

Legacy (v1):
    [
        {
            "id": "1",
            "title": "Article title",
            "url": "https://example.com/article",
            "is_read": "0",
            "is_fav": "1",
            "content": "<p>...</p>",
            "user_id": "1",
            "tags": "news,tech"
        }
    ]

Current (v2):
    [
        {
            "id": 12,
            "title": "Article title",
            "url": "https://example.com/article",
            "is_archived": 1,
            "is_starred": 0,
            "content": "<p>...</p>",
            "created_at": "2016-04-11T16:15:38+0200",
            "mimetype": "text/html",
            "language": "en",
            "preview_picture": "https://example.com/cover.png",
            "tags": ["news", "tech"]
        }
    ]
"""

from __future__ import annotations

from typing import Any, Iterator, TextIO

from ..core.timestamps import parse_timestamp
from ..core.types import CanonicalEntry, SourceFormat
from .common import as_bool, as_text, require_mapping, split_tags
from .json_stream import open_array


# Placeholder titles written by the legacy application when a fetch failed.
# Such entries get their title and content dropped so a refresh can repopulate them.
UNTITLED_TITLES = frozenset(
    {
        "Untitled",
        "Sans titre",
        "sans titre",
        "Sin título",
        "Sin titulo",
        "Ohne Titel",
        "Senza titolo",
        "Sem título",
        "Sem titulo",
        "Zonder titel",
        "Bez tytułu",
        "Без названия",
        "Başlıksız",
    }
)


def open_records(handle: TextIO, source: str | None = None) -> Iterator[Any]:
    return open_array(handle, source=source)


def adapt_v1(record: Any) -> CanonicalEntry:
    """Map a legacy export entry.

    The legacy schema has no creation date, so entries default to import time.
    """
    data = require_mapping(record)
    title = as_text(data.get("title"))
    content = as_text(data.get("content"))
    if title in UNTITLED_TITLES:
        title = None
        content = None

    return CanonicalEntry(
        url=data.get("url"),
        source_format=SourceFormat.V1,
        title=title,
        content=content,
        tags=split_tags(data.get("tags")),
        is_archived=as_bool(data.get("is_read")),
        is_starred=as_bool(data.get("is_fav")),
    )


def adapt_v2(record: Any) -> CanonicalEntry:
    """Map a current export entry."""
    data = require_mapping(record)
    return CanonicalEntry(
        url=data.get("url"),
        source_format=SourceFormat.V2,
        title=as_text(data.get("title")),
        content=as_text(data.get("content")),
        tags=split_tags(data.get("tags")),
        is_archived=as_bool(data.get("is_archived")),
        is_starred=as_bool(data.get("is_starred")),
        created_at=parse_timestamp(data.get("created_at")),
        language=as_text(data.get("language")),
        preview_picture=as_text(data.get("preview_picture")),
    )
