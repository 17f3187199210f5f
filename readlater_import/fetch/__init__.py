"""
Live page fetching and content extraction.

This package handles HTTP fetching, readable content extraction and the
optional content refresh stage of an import run.
"""

from .extractor import extract_content, extract_title
from .fetcher import MAX_RETRIES, FetchResult, fetch_url
from .refresher import ContentRefresher, RefreshOutcome, RefreshStats

__all__ = [
    "ContentRefresher",
    "FetchResult",
    "MAX_RETRIES",
    "RefreshOutcome",
    "RefreshStats",
    "extract_content",
    "extract_title",
    "fetch_url",
]
