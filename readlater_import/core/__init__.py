"""
Core domain models and business logic.

This package contains data types, URL normalization, timestamp coercion,
the error hierarchy and deduplication. None of it depends on a specific
export format or storage engine.
"""

from .dedup import DedupIndex
from .errors import (
    ContentRefreshError,
    EntryAdaptError,
    FatalConfigurationError,
    FatalParseError,
    OwnerNotFoundError,
    ReadlaterImportError,
    SourceNotFoundError,
    StorageUnavailableError,
)
from .protocols import AccountResolver, ArticleStorage
from .timestamps import parse_timestamp, webkit_to_datetime
from .types import (
    CanonicalEntry,
    ImportSession,
    InsertOutcome,
    InsertResult,
    Owner,
    RunSummary,
    SessionContext,
    SourceFormat,
)
from .urls import default_title, normalize_url, url_fingerprint

__all__ = [
    "AccountResolver",
    "ArticleStorage",
    "CanonicalEntry",
    "ContentRefreshError",
    "DedupIndex",
    "EntryAdaptError",
    "FatalConfigurationError",
    "FatalParseError",
    "ImportSession",
    "InsertOutcome",
    "InsertResult",
    "Owner",
    "OwnerNotFoundError",
    "ReadlaterImportError",
    "RunSummary",
    "SessionContext",
    "SourceFormat",
    "SourceNotFoundError",
    "StorageUnavailableError",
    "default_title",
    "normalize_url",
    "parse_timestamp",
    "url_fingerprint",
    "webkit_to_datetime",
]
