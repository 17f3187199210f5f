"""
Parser for the social-bookmarking service JSON export.

Format:
    [
        {
            "href": "https://example.com/article",
            "description": "Article title",
            "extended": "Longer note written by the user",
            "meta": "...",
            "hash": "...",
            "time": "2016-06-08T12:10:13Z",
            "shared": "yes",
            "toread": "no",
            "tags": "python web"
        }
    ]

``toread == "no"`` means the bookmark was already read. Tags are separated
by spaces.
"""

from __future__ import annotations

from typing import Any, Iterator, TextIO

from ..core.timestamps import parse_timestamp
from ..core.types import CanonicalEntry, SourceFormat
from .common import as_text, require_mapping, split_tags
from .json_stream import open_array


def open_records(handle: TextIO, source: str | None = None) -> Iterator[Any]:
    return open_array(handle, source=source)


def adapt(record: Any) -> CanonicalEntry:
    data = require_mapping(record)
    to_read = as_text(data.get("toread"))
    return CanonicalEntry(
        url=data.get("href"),
        source_format=SourceFormat.PINBOARD,
        title=as_text(data.get("description")),
        content=as_text(data.get("extended")),
        tags=split_tags(data.get("tags"), separator=" "),
        is_archived=(to_read or "").lower() == "no",
        created_at=parse_timestamp(data.get("time")),
    )
