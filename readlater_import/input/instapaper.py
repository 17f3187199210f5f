"""
Parser for the read-later service CSV export.

Format (header row first, Timestamp and Tags columns only in newer exports):
    URL,Title,Selection,Folder,Timestamp,Tags
    https://example.com/a,Article A,,Unread,1506604221,[]
    https://example.com/b,Article B,Quoted text,Archive,1506604222,"[""tech""]"
    https://example.com/c,Article C,,Starred,1506604223,
    https://example.com/d,Article D,,Reading list,1506604224,

The Folder column doubles as the read status: ``Archive`` is read,
``Starred`` is read and starred, ``Unread`` is neither. Any other folder name
is a user folder and becomes a tag.
"""

from __future__ import annotations

import csv
from typing import Any, Iterator, TextIO

from ..core.errors import FatalParseError
from ..core.timestamps import parse_timestamp
from ..core.types import CanonicalEntry, SourceFormat
from .common import as_text, parse_tag_list, require_mapping


STATUS_FOLDERS = {"Archive", "Unread", "Starred"}


def open_records(handle: TextIO, source: str | None = None) -> Iterator[dict[str, Any]]:
    reader = csv.reader(handle)
    try:
        header = next(reader, None)
    except csv.Error as exc:
        raise FatalParseError(source, f"invalid CSV header: {exc}") from exc
    if not header:
        raise FatalParseError(source, "empty file")

    columns = [name.strip().lstrip("\ufeff").lower() for name in header]
    if "url" not in columns:
        raise FatalParseError(source, "missing 'URL' column in CSV header")
    return _iter_rows(reader, columns, source)


def _iter_rows(reader, columns: list[str], source: str | None) -> Iterator[dict[str, Any]]:
    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except csv.Error as exc:
            raise FatalParseError(source, f"line {reader.line_num}: {exc}") from exc
        if not row or not any(cell.strip() for cell in row):
            continue
        yield dict(zip(columns, row))


def adapt(record: Any) -> CanonicalEntry:
    data = require_mapping(record)
    folder = as_text(data.get("folder"))
    tags = parse_tag_list(data.get("tags"))
    if folder and folder not in STATUS_FOLDERS:
        tags.add(folder)

    entry_kwargs: dict[str, Any] = {}
    if as_text(data.get("timestamp")):
        entry_kwargs["created_at"] = parse_timestamp(data.get("timestamp"))

    return CanonicalEntry(
        url=data.get("url"),
        source_format=SourceFormat.INSTAPAPER,
        title=as_text(data.get("title")),
        content=as_text(data.get("selection")),
        tags=tags,
        is_archived=folder in ("Archive", "Starred"),
        is_starred=folder == "Starred",
        **entry_kwargs,
    )
