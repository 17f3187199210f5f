"""
HTTP page fetching for content refresh.

Uses a synchronous httpx client. Each attempt has a wall-clock deadline that
covers the whole body, so one slow host cannot stall a large import.
Retries are capped at MAX_RETRIES and bodies at MAX_BYTES.
"""

from __future__ import annotations

from dataclasses import dataclass
import time
from typing import Collection, Mapping

import httpx


MAX_RETRIES = 2
MAX_BYTES = 10 * 1024 * 1024


@dataclass
class FetchResult:
    """Result of an HTTP fetch operation.

    Either text will be populated (success) or error will be populated (failure),
    but never both. status_code may be None for network-level failures.

    Attributes:
        url: The URL that was fetched
        status_code: HTTP status code, or None if request failed before getting response
        text: The response body text, or None on error
        error: Error message if fetch failed, None on success
        content_type: Media type of the response without parameters
    """
    url: str
    status_code: int | None
    text: str | None
    error: str | None
    content_type: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.text is not None


def fetch_url(
    url: str,
    timeout: float,
    retries: int,
    user_agent: str,
    trust_env: bool,
    headers: Mapping[str, str] | None = None,
    transport: httpx.BaseTransport | None = None,
    max_bytes: int = MAX_BYTES,
    content_types: Collection[str] | None = None,
    budget: float | None = None,
) -> FetchResult:
    """Fetch a URL using httpx with capped retry logic.

    Uses a synchronous HTTP client that follows redirects and respects
    system proxy settings when trust_env is enabled. The body is streamed so
    every attempt is bounded in wall-clock time and in size, whatever pace
    the server sends at. Non-2xx responses are reported as errors and are
    not retried.

    Args:
        url: The URL to fetch
        timeout: Wall-clock limit of one attempt in seconds, body included
        retries: Number of retry attempts after initial failure (capped at MAX_RETRIES)
        user_agent: User-Agent header string
        trust_env: Whether to respect system proxy settings from environment
        headers: Extra request headers (e.g. site credentials of the acting owner)
        transport: Optional httpx transport, used by tests
        max_bytes: Largest accepted body; bigger responses are errors
        content_types: Accepted media types; others are rejected before the
                       body is downloaded. None accepts any type.
        budget: Optional wall-clock limit for all attempts and backoff pauses

    Returns:
        FetchResult with text on success or error message on failure
    """
    request_headers = {"User-Agent": user_agent}
    if headers:
        request_headers.update(headers)
    attempts = 1 + max(0, min(retries, MAX_RETRIES))
    give_up_at = time.monotonic() + budget if budget is not None else None
    last_error: str | None = None

    for attempt in range(attempts):
        deadline = time.monotonic() + timeout
        if give_up_at is not None:
            deadline = min(deadline, give_up_at)
        try:
            return _fetch_once(
                url,
                deadline=deadline,
                headers=request_headers,
                trust_env=trust_env,
                transport=transport,
                max_bytes=max_bytes,
                content_types=content_types,
            )
        except httpx.HTTPError as exc:
            last_error = f"{type(exc).__name__}: {exc}"

        if attempt == attempts - 1:
            break
        # Linear backoff: 0.5s, 1.0s
        pause = 0.5 * (attempt + 1)
        if give_up_at is not None and time.monotonic() + pause >= give_up_at:
            break
        time.sleep(pause)

    return FetchResult(url=url, status_code=None, text=None, error=last_error)


def _fetch_once(
    url: str,
    deadline: float,
    headers: Mapping[str, str],
    trust_env: bool,
    transport: httpx.BaseTransport | None,
    max_bytes: int,
    content_types: Collection[str] | None,
) -> FetchResult:
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise httpx.TimeoutException("timed out before the request started")

    with httpx.Client(
        timeout=remaining,
        headers=headers,
        follow_redirects=True,
        trust_env=trust_env,
        transport=transport,
    ) as client:
        with client.stream("GET", url) as resp:
            content_type = resp.headers.get("content-type", "").split(";", 1)[0].strip().lower() or None
            if not resp.is_success:
                return FetchResult(
                    url=url,
                    status_code=resp.status_code,
                    text=None,
                    error=f"HTTP {resp.status_code}",
                    content_type=content_type,
                )
            if content_types is not None and content_type and content_type not in content_types:
                return FetchResult(
                    url=url,
                    status_code=resp.status_code,
                    text=None,
                    error=f"unsupported content type {content_type}",
                    content_type=content_type,
                )

            body = bytearray()
            for chunk in resp.iter_bytes():
                body.extend(chunk)
                if len(body) > max_bytes:
                    return FetchResult(
                        url=url,
                        status_code=resp.status_code,
                        text=None,
                        error=f"response larger than {max_bytes} bytes",
                        content_type=content_type,
                    )
                if time.monotonic() > deadline:
                    raise httpx.ReadTimeout("timed out while reading the response body", request=resp.request)

            return FetchResult(
                url=url,
                status_code=resp.status_code,
                text=body.decode(resp.charset_encoding or "utf-8", errors="replace"),
                error=None,
                content_type=content_type,
            )
