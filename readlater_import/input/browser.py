"""
Parsers for browser bookmark exports (Firefox and Chrome).

Both browsers store a tree of folder nodes with a ``children`` array and
bookmark leaves. They differ only in field names:

Firefox backup (``bookmarks-YYYY-MM-DD.json``):
    {"guid": "root________", "children": [
        {"title": "Bookmarks Menu", "children": [
            {"title": "Example", "uri": "https://example.com",
             "dateAdded": 1474030113407000, "tags": "news,tech",
             "type": "text/x-moz-place"}
        ]}
    ]}

Chrome ``Bookmarks`` file:
    {"checksum": "...", "version": 1, "roots": {
        "bookmark_bar": {"type": "folder", "name": "Bookmarks bar", "children": [
            {"type": "url", "name": "Example", "url": "https://example.com",
             "date_added": "13118000000000000"}
        ]},
        "other": {...}, "synced": {...}
    }}

The tree is walked while streaming, so memory is bounded by the folder depth
plus one bookmark, whatever the number of bookmarks.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterator, TextIO

from ..core.timestamps import parse_timestamp, webkit_to_datetime
from ..core.types import CanonicalEntry, SourceFormat
from .common import as_text, require_mapping, split_tags
from .json_stream import JsonStreamReader


WEB_SCHEMES = ("http://", "https://")


@dataclass(frozen=True)
class BrowserFields:
    """Field names of one browser's bookmark leaves."""
    source_format: SourceFormat
    title: str
    url: str
    date: str
    parse_date: Callable[[Any], datetime]
    leaf_type: str

    def is_bookmark(self, node: dict[str, Any]) -> bool:
        """A typed bookmark leaf, or an untyped node carrying a URL."""
        kind = node.get("type")
        return kind == self.leaf_type or (kind is None and self.url in node)


FIREFOX_FIELDS = BrowserFields(
    source_format=SourceFormat.FIREFOX,
    title="title",
    url="uri",
    date="dateAdded",
    parse_date=parse_timestamp,
    leaf_type="text/x-moz-place",
)

CHROME_FIELDS = BrowserFields(
    source_format=SourceFormat.CHROME,
    title="name",
    url="url",
    date="date_added",
    parse_date=webkit_to_datetime,
    leaf_type="url",
)


def walk_bookmarks(reader: JsonStreamReader, fields: BrowserFields) -> Iterator[dict[str, Any]]:
    """Stream one tree node and yield every bookmark leaf below it.

    Leaves are yielded even when their URL is missing, so the adapter can
    record them as failures. Folder ``children`` arrays are descended into
    without being materialized.
    """
    head = reader.peek()
    if head == "[":
        for _ in reader.iter_array():
            yield from walk_bookmarks(reader, fields)
        return
    if head != "{":
        reader.skip_value()
        return

    node: dict[str, Any] = {}
    for key in reader.iter_object():
        if key == "children" and reader.peek() in ("[", "{"):
            yield from walk_bookmarks(reader, fields)
        else:
            node[key] = reader.read_value()
    if fields.is_bookmark(node):
        yield node


def open_firefox_records(handle: TextIO, source: str | None = None) -> Iterator[dict[str, Any]]:
    reader = JsonStreamReader(handle, source=source)
    if reader.peek() != "{":
        raise reader.error("expected a Firefox bookmark backup object")
    return _firefox_leaves(reader)


def _firefox_leaves(reader: JsonStreamReader) -> Iterator[dict[str, Any]]:
    for node in walk_bookmarks(reader, FIREFOX_FIELDS):
        # place: queries (smart folders), bookmarklets and local files are not pages
        uri = str(node.get(FIREFOX_FIELDS.url) or "").strip().lower()
        if uri and not uri.startswith(WEB_SCHEMES):
            continue
        yield node


def open_chrome_records(handle: TextIO, source: str | None = None) -> Iterator[dict[str, Any]]:
    reader = JsonStreamReader(handle, source=source)
    if not reader.peek():
        raise reader.error("empty file")
    reader.descend(("roots",))
    if reader.peek() != "{":
        raise reader.error("expected a 'roots' object")
    return _chrome_leaves(reader)


def _chrome_leaves(reader: JsonStreamReader) -> Iterator[dict[str, Any]]:
    for _root_name in reader.iter_object():
        yield from walk_bookmarks(reader, CHROME_FIELDS)


def adapt_bookmark(record: Any, fields: BrowserFields) -> CanonicalEntry:
    data = require_mapping(record)
    date = data.get(fields.date)
    entry_kwargs: dict[str, Any] = {}
    if date is not None:
        entry_kwargs["created_at"] = fields.parse_date(date)
    return CanonicalEntry(
        url=data.get(fields.url),
        source_format=fields.source_format,
        title=as_text(data.get(fields.title)),
        tags=split_tags(data.get("tags")),
        **entry_kwargs,
    )


def adapt_firefox(record: Any) -> CanonicalEntry:
    return adapt_bookmark(record, FIREFOX_FIELDS)


def adapt_chrome(record: Any) -> CanonicalEntry:
    return adapt_bookmark(record, CHROME_FIELDS)
