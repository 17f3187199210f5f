"""
Exception hierarchy for the import pipeline.

Fatal errors stop a run and propagate to the caller:
- FatalConfigurationError: the run cannot start (missing file, unknown owner)
  or can no longer make progress (storage lost)
- FatalParseError: the export container is structurally invalid

Entry-level errors are recovered inside the importer and only show up in
the run summary counters.
"""

from __future__ import annotations

from pathlib import Path


class ReadlaterImportError(Exception):
    """Base exception for all import errors."""


class FatalConfigurationError(ReadlaterImportError):
    """Raised when a run cannot start or cannot continue."""


class SourceNotFoundError(FatalConfigurationError):
    """Raised when the export file does not exist or cannot be read."""

    def __init__(self, file_path: str | Path, reason: str = ""):
        message = f'File "{file_path}" not found'
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = str(file_path)


class OwnerNotFoundError(FatalConfigurationError):
    """Raised when the target account cannot be resolved."""

    def __init__(self, identifier: str | int):
        super().__init__(f'User "{identifier}" not found')
        self.identifier = identifier


class StorageUnavailableError(FatalConfigurationError):
    """Raised when the persistence layer is unreachable mid-run."""


class FatalParseError(ReadlaterImportError):
    """Raised when the export container cannot be parsed for its format."""

    def __init__(self, file_path: str | Path | None = None, reason: str = ""):
        message = "Invalid export file"
        if file_path:
            message += f" {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = str(file_path) if file_path else None
        self.reason = reason


class EntryAdaptError(ReadlaterImportError):
    """Raised when one raw record cannot be mapped to a canonical entry."""

    def __init__(self, reason: str, field: str | None = None):
        super().__init__(reason)
        self.reason = reason
        self.field = field


class ContentRefreshError(ReadlaterImportError):
    """Raised when the live page cannot be fetched or extracted."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Refresh failed for {url}: {reason}")
        self.url = url
        self.reason = reason
