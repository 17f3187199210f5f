"""
Incremental JSON reading for large export files.

Exports can be arbitrarily large, so records are decoded one at a time from a
sliding text buffer instead of loading the whole document. The reader exposes
just enough structure navigation for the export formats:

- ``iter_object`` yields each key of an object; the caller consumes the value
- ``iter_array`` yields once per element; the caller consumes the element
- ``read_value`` decodes one complete value with ``json.JSONDecoder.raw_decode``
- ``descend`` walks down a path of object keys

Any structural problem raises FatalParseError.
"""

from __future__ import annotations

import json
from typing import Any, Iterator, Sequence, TextIO

from ..core.errors import FatalParseError


_WHITESPACE = " \t\r\n"
_NUMBER_TAIL = "0123456789.eE+-"
DEFAULT_CHUNK_SIZE = 64 * 1024


class JsonStreamReader:
    """Forward-only JSON reader over a text handle.

    Memory use is bounded by the largest single value read through
    ``read_value`` plus one chunk.

    Attributes:
        source: Name of the source used in error messages
    """

    def __init__(self, handle: TextIO, source: str | None = None, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.source = source
        self._handle = handle
        self._chunk_size = chunk_size
        self._decoder = json.JSONDecoder()
        self._buf = ""
        self._pos = 0
        self._dropped = 0
        self._eof = False

    @property
    def offset(self) -> int:
        """Character offset of the read position in the source."""
        return self._dropped + self._pos

    def peek(self) -> str:
        """Return the next non-whitespace character without consuming it.

        Returns an empty string at end of input.
        """
        while True:
            buf = self._buf
            pos = self._pos
            size = len(buf)
            while pos < size and buf[pos] in _WHITESPACE:
                pos += 1
            self._pos = pos
            if pos < size:
                return buf[pos]
            if not self._fill():
                return ""

    def expect(self, char: str) -> None:
        found = self.peek()
        if found != char:
            raise self.error(f"expected {char!r}, found {found or 'end of file'!r}")
        self._pos += 1

    def read_value(self) -> Any:
        """Decode and consume the next complete JSON value."""
        if not self.peek():
            raise self.error("unexpected end of file")
        while True:
            try:
                value, end = self._decoder.raw_decode(self._buf, self._pos)
            except json.JSONDecodeError as exc:
                # Value may be cut by the chunk boundary
                if self._fill():
                    continue
                raise self.error(exc.msg) from exc
            if self._may_continue(value, end) and self._fill():
                continue
            self._pos = end
            return value

    def _may_continue(self, value: Any, end: int) -> bool:
        """Whether a decoded value may be the prefix of a longer one.

        A number cut by the chunk boundary decodes as its valid prefix, so
        ``1.`` | ``25`` reads as ``1`` followed by a stray ``.``.
        """
        if end >= len(self._buf):
            return True
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        return self._buf[end] in _NUMBER_TAIL

    def skip_value(self) -> None:
        self.read_value()

    def iter_array(self) -> Iterator[None]:
        """Yield once per array element; the caller must consume each element."""
        self.expect("[")
        if self.peek() == "]":
            self._pos += 1
            return
        while True:
            yield
            found = self.peek()
            if found == ",":
                self._pos += 1
                continue
            if found == "]":
                self._pos += 1
                return
            raise self.error(f"expected ',' or ']', found {found or 'end of file'!r}")

    def iter_object(self) -> Iterator[str]:
        """Yield each object key; the caller must consume the matching value."""
        self.expect("{")
        if self.peek() == "}":
            self._pos += 1
            return
        while True:
            if self.peek() != '"':
                raise self.error("expected an object key")
            key = self.read_value()
            self.expect(":")
            yield key
            found = self.peek()
            if found == ",":
                self._pos += 1
                continue
            if found == "}":
                self._pos += 1
                return
            raise self.error(f"expected ',' or '}}', found {found or 'end of file'!r}")

    def descend(self, path: Sequence[str]) -> None:
        """Move the read position to the value stored under a key path.

        Raises:
            FatalParseError: If a container on the path is not an object or a
                             key is missing
        """
        for key in path:
            if self.peek() != "{":
                raise self.error(f"expected an object containing {key!r}")
            for name in self.iter_object():
                if name == key:
                    break
                self.skip_value()
            else:
                raise self.error(f"missing key {key!r}")

    def error(self, reason: str) -> FatalParseError:
        return FatalParseError(self.source, f"{reason} (offset {self.offset})")

    def _fill(self) -> bool:
        if self._eof:
            return False
        chunk = self._handle.read(self._chunk_size)
        if not chunk:
            self._eof = True
            return False
        self._dropped += self._pos
        self._buf = self._buf[self._pos:] + chunk
        self._pos = 0
        return True


def open_array(
    handle: TextIO,
    path: Sequence[str] = (),
    source: str | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[Any]:
    """Locate a JSON array and return a lazy iterator over its elements.

    The container head is validated immediately so an invalid file fails
    before any element is handed out.

    Args:
        handle: Text handle positioned at the start of the document
        path: Object keys leading to the array; empty for a top-level array
        source: Name of the source used in error messages
        chunk_size: Number of characters read from the handle at a time

    Returns:
        Forward-only iterator of decoded elements

    Raises:
        FatalParseError: If the document does not contain an array at ``path``
    """
    reader = JsonStreamReader(handle, source=source, chunk_size=chunk_size)
    if not reader.peek():
        raise reader.error("empty file")
    reader.descend(path)
    if reader.peek() != "[":
        raise reader.error("expected a JSON array")
    return _iter_elements(reader)


def _iter_elements(reader: JsonStreamReader) -> Iterator[Any]:
    for _ in reader.iter_array():
        yield reader.read_value()
