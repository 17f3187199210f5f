"""
Core data types for the import pipeline.

This module defines the structures shared by every stage:
- SourceFormat: The closed set of supported export formats
- CanonicalEntry: The normalized shape every format adapter produces
- ImportSession: Immutable configuration of one import run
- RunSummary: Final imported / skipped / failed counters of a run
- Owner, SessionContext: The account being imported into and its acting identity
- InsertOutcome, InsertResult: What the persistence layer reports for a write
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Mapping
from urllib.parse import urlsplit

from .errors import EntryAdaptError
from .timestamps import utcnow
from .urls import default_title, normalize_url, url_fingerprint


class SourceFormat(str, Enum):
    """Export formats understood by the importer, keyed by CLI selector."""

    V1 = "v1"
    V2 = "v2"
    FIREFOX = "firefox"
    CHROME = "chrome"
    READABILITY = "readability"
    INSTAPAPER = "instapaper"
    PINBOARD = "pinboard"

    @classmethod
    def from_selector(cls, selector: "str | SourceFormat") -> "SourceFormat":
        """Resolve a selector string (case-insensitive) to a format.

        Raises:
            ValueError: If the selector is not a supported format
        """
        if isinstance(selector, cls):
            return selector
        try:
            return cls(str(selector).strip().lower())
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown importer {selector!r}; expected one of: {choices}") from None


@dataclass
class CanonicalEntry:
    """One export record in the normalized internal shape.

    The URL is normalized at construction time. An entry without a usable
    absolute URL cannot exist, so adapters surface that as EntryAdaptError.

    Attributes:
        url: The URL as given by the export (whitespace stripped)
        source_format: Which adapter produced the entry (diagnostics only)
        title: Optional title; display_title falls back to the URL
        content: Optional HTML or plain text content
        tags: Set of tag labels
        is_archived: Read / archived flag
        is_starred: Starred / favorite flag
        created_at: Creation time from the export, or the import time
        language: Optional language code (current self-export only)
        preview_picture: Optional preview image URL (current self-export only)
        normalized_url: Derived deduplication key
    """
    url: str
    source_format: SourceFormat
    title: str | None = None
    content: str | None = None
    tags: set[str] = field(default_factory=set)
    is_archived: bool = False
    is_starred: bool = False
    created_at: datetime = field(default_factory=utcnow)
    language: str | None = None
    preview_picture: str | None = None
    normalized_url: str = field(init=False)

    def __post_init__(self):
        if not isinstance(self.url, str) or not self.url.strip():
            raise EntryAdaptError("missing url", field="url")
        self.url = self.url.strip()
        try:
            self.normalized_url = normalize_url(self.url)
        except ValueError as exc:
            raise EntryAdaptError(str(exc), field="url") from exc
        if self.title is not None:
            self.title = self.title.strip() or None
        self.tags = {tag.strip() for tag in self.tags if tag and tag.strip()}

    @property
    def display_title(self) -> str:
        return self.title or default_title(self.url)

    @property
    def fingerprint(self) -> str:
        return url_fingerprint(self.normalized_url)


@dataclass(frozen=True)
class ImportSession:
    """Immutable configuration of a single import run.

    Attributes:
        owner_id: Identifier of the account receiving the entries
        file_path: Path to the export file
        format: Export format (selector strings are coerced)
        mark_as_read: Force every imported entry to archived
        disable_content_update: Skip fetching live page content
    """
    owner_id: int
    file_path: Path
    format: SourceFormat = SourceFormat.V1
    mark_as_read: bool = False
    disable_content_update: bool = False

    def __post_init__(self):
        object.__setattr__(self, "file_path", Path(self.file_path))
        object.__setattr__(self, "format", SourceFormat.from_selector(self.format))
        object.__setattr__(self, "mark_as_read", bool(self.mark_as_read))
        object.__setattr__(self, "disable_content_update", bool(self.disable_content_update))


@dataclass(frozen=True)
class RunSummary:
    """Finalized counters of a finished import run."""
    imported: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.imported + self.skipped + self.failed


@dataclass
class Owner:
    """The account entries are imported into."""
    id: int
    username: str


@dataclass(frozen=True)
class SessionContext:
    """Acting identity for a run, passed to the stages that need it.

    Attributes:
        owner: The account the run acts as
        site_headers: Per-host request headers (e.g. paywall cookies),
                      keyed by lowercase host name
    """
    owner: Owner
    site_headers: Mapping[str, Mapping[str, str]] = field(default_factory=dict)

    def headers_for(self, url: str) -> dict[str, str]:
        """Return the headers registered for the URL's host or a parent domain."""
        host = (urlsplit(url).hostname or "").lower()
        while host:
            headers = self.site_headers.get(host)
            if headers:
                return dict(headers)
            if "." not in host:
                break
            host = host.split(".", 1)[1]
        return {}


class InsertOutcome(str, Enum):
    INSERTED = "inserted"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass(frozen=True)
class InsertResult:
    outcome: InsertOutcome
    reason: str | None = None
