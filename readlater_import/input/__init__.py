"""
Export format parsers and adapters.

Every supported SourceFormat is bound to exactly one (parser, adapter) pair:
- the parser validates the container and returns a lazy iterator of raw records
- the adapter maps one raw record to a CanonicalEntry or raises EntryAdaptError
"""

from __future__ import annotations

from typing import Any, Callable, Iterator, NamedTuple, TextIO

from ..core.types import CanonicalEntry, SourceFormat
from . import browser, instapaper, native, pinboard, readability


class FormatBinding(NamedTuple):
    open_records: Callable[[TextIO, str | None], Iterator[Any]]
    adapt: Callable[[Any], CanonicalEntry]
    newline: str | None = None


FORMATS: dict[SourceFormat, FormatBinding] = {
    SourceFormat.V1: FormatBinding(native.open_records, native.adapt_v1),
    SourceFormat.V2: FormatBinding(native.open_records, native.adapt_v2),
    SourceFormat.FIREFOX: FormatBinding(browser.open_firefox_records, browser.adapt_firefox),
    SourceFormat.CHROME: FormatBinding(browser.open_chrome_records, browser.adapt_chrome),
    SourceFormat.READABILITY: FormatBinding(readability.open_records, readability.adapt),
    # csv needs universal newlines disabled to keep quoted line breaks intact
    SourceFormat.INSTAPAPER: FormatBinding(instapaper.open_records, instapaper.adapt, newline=""),
    SourceFormat.PINBOARD: FormatBinding(pinboard.open_records, pinboard.adapt),
}


def binding_for(source_format: SourceFormat | str) -> FormatBinding:
    """Return the parser/adapter pair of a format."""
    return FORMATS[SourceFormat.from_selector(source_format)]


__all__ = ["FORMATS", "FormatBinding", "binding_for"]
