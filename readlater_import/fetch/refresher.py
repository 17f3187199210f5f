"""
Optional refresh of entry content from the live page.

Exports often carry stale or no content. When refresh is enabled, each new
entry's URL is fetched and its readable content replaces the exported one.
A failed refresh never fails the entry: the exported content is kept.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import Callable

from ..config import ExtractConfig, FetchConfig
from ..core.errors import ContentRefreshError
from ..core.types import CanonicalEntry, SessionContext
from ..logging_utils import log_event
from .extractor import extract_content, extract_title
from .fetcher import FetchResult, fetch_url


HTML_CONTENT_TYPES = {"text/html", "application/xhtml+xml"}


@dataclass
class RefreshOutcome:
    """Result of refreshing one entry.

    Attributes:
        refreshed: True if the entry content was replaced
        error: Why the refresh did not happen, None on success
    """
    refreshed: bool
    error: str | None = None


@dataclass
class RefreshStats:
    """Statistics collected by the refresher during one run.

    Attributes:
        attempted: Number of fetches started
        refreshed: Entries whose content was replaced
        failed: Fetches that failed (entry kept its export content)
        skipped_budget: Entries not fetched because the run budget was spent
    """
    attempted: int = 0
    refreshed: int = 0
    failed: int = 0
    skipped_budget: int = 0


def categorize_error(error: str | None, status_code: int | None = None) -> str:
    """Categorize fetch errors for better logging.

    Returns:
        Error category: "timeout", "blocked", "http_error", "network_failed", "unknown"
    """
    if not error:
        return "unknown"
    error_lower = error.lower()
    if "timeout" in error_lower or "timed out" in error_lower:
        return "timeout"
    if status_code in (401, 403) or error_lower in ("http 401", "http 403") or "blocked" in error_lower:
        return "blocked"
    if status_code is not None or error_lower.startswith("http "):
        return "http_error"
    if "connect" in error_lower or "connection" in error_lower:
        return "network_failed"
    return "unknown"


class ContentRefresher:
    """Replaces entry content with the readable part of the live page.

    At most ``1 + min(retries, 2)`` fetch attempts are made per entry, each
    bounded by the configured timeout. When a run budget is configured, all
    attempts of one entry together, backoff included, stay within the
    remaining budget, and no fetch starts once the budget is spent.

    Attributes:
        context: Acting identity; its per-site headers are sent with fetches
        stats: Counters for this refresher's run
    """

    def __init__(
        self,
        fetch_cfg: FetchConfig,
        extract_cfg: ExtractConfig,
        context: SessionContext,
        logger: logging.Logger | None = None,
        fetch: Callable[..., FetchResult] = fetch_url,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.context = context
        self.stats = RefreshStats()
        self._fetch_cfg = fetch_cfg
        self._extract_cfg = extract_cfg
        self._logger = logger or logging.getLogger("readlater_import.refresh")
        self._fetch = fetch
        self._clock = clock
        self._spent = 0.0

    @property
    def remaining_budget(self) -> float | None:
        budget = self._fetch_cfg.run_budget_seconds
        if budget is None:
            return None
        return max(0.0, budget - self._spent)

    def refresh(self, entry: CanonicalEntry) -> RefreshOutcome:
        """Fetch the entry's page and replace its content on success.

        Never raises for fetch or extraction problems; the returned outcome
        carries the reason instead.
        """
        remaining = self.remaining_budget
        if remaining is not None and remaining <= 0:
            self.stats.skipped_budget += 1
            return RefreshOutcome(refreshed=False, error="budget_exhausted")

        timeout = self._fetch_cfg.timeout_seconds
        if remaining is not None:
            timeout = min(timeout, remaining)

        self.stats.attempted += 1
        started = self._clock()
        try:
            content, title = self._load(entry.url, timeout, remaining)
        except ContentRefreshError as exc:
            return self._failed(entry, exc.reason)
        except Exception as exc:  # noqa: BLE001
            return self._failed(entry, f"{type(exc).__name__}: {exc}")
        finally:
            self._spent += self._clock() - started

        entry.content = content
        if not entry.title and title:
            entry.title = title
        self.stats.refreshed += 1
        return RefreshOutcome(refreshed=True)

    def _load(self, url: str, timeout: float, budget: float | None) -> tuple[str, str | None]:
        result = self._fetch(
            url,
            timeout=timeout,
            retries=self._fetch_cfg.retries,
            user_agent=self._fetch_cfg.user_agent,
            trust_env=self._fetch_cfg.trust_env,
            headers=self.context.headers_for(url),
            max_bytes=self._fetch_cfg.max_response_bytes,
            content_types=HTML_CONTENT_TYPES,
            budget=budget,
        )
        if not result.ok:
            raise ContentRefreshError(url, result.error or "empty response")
        if result.content_type and result.content_type not in HTML_CONTENT_TYPES:
            raise ContentRefreshError(url, f"unsupported content type {result.content_type}")

        content = extract_content(result.text, self._extract_cfg.primary, self._extract_cfg.fallback)
        if not content:
            raise ContentRefreshError(url, "no readable content")
        return content, extract_title(result.text)

    def _failed(self, entry: CanonicalEntry, reason: str) -> RefreshOutcome:
        self.stats.failed += 1
        log_event(
            self._logger,
            "Content refresh failed, keeping export content",
            event="refresh_failed",
            url=entry.url,
            error=reason,
            error_category=categorize_error(reason),
            has_export_content=bool(entry.content),
        )
        return RefreshOutcome(refreshed=False, error=reason)
