"""
Parser for the reader-mode tool export.

Format:
    {
        "bookmarks": [
            {
                "article__title": "Article title",
                "article__url": "https://example.com/article",
                "archive": false,
                "favorite": true,
                "date_added": "2016-08-25T12:05:00Z"
            }
        ],
        "recommendations": []
    }
"""

from __future__ import annotations

from typing import Any, Iterator, TextIO

from ..core.timestamps import parse_timestamp
from ..core.types import CanonicalEntry, SourceFormat
from .common import as_bool, as_text, require_mapping
from .json_stream import open_array


def open_records(handle: TextIO, source: str | None = None) -> Iterator[Any]:
    return open_array(handle, path=("bookmarks",), source=source)


def adapt(record: Any) -> CanonicalEntry:
    data = require_mapping(record)
    return CanonicalEntry(
        url=data.get("article__url"),
        source_format=SourceFormat.READABILITY,
        title=as_text(data.get("article__title")),
        is_archived=as_bool(data.get("archive")),
        is_starred=as_bool(data.get("favorite")),
        created_at=parse_timestamp(data.get("date_added")),
    )
