"""
URL normalization used as the deduplication key.

Two URLs that only differ by fragment, trailing slash, scheme or host case,
or an explicit default port map to the same normalized value.
"""

from __future__ import annotations

import hashlib
from urllib.parse import urlsplit, urlunsplit


DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_url(url: str) -> str:
    """Return the canonical form of an absolute URL.

    Args:
        url: The raw URL from an export record

    Returns:
        The URL with lowercase scheme and host, no default port, no fragment
        and no trailing slash on the path. The query string is kept verbatim.

    Raises:
        ValueError: If the URL is empty or not absolute

    Examples:
        >>> normalize_url("HTTPS://Example.com:443/a/#top")
        'https://example.com/a'
    """
    if not isinstance(url, str) or not url.strip():
        raise ValueError("empty url")

    parts = urlsplit(url.strip())
    scheme = parts.scheme.lower()
    if not scheme or not parts.hostname:
        raise ValueError(f"url is not absolute: {url!r}")

    host = parts.hostname.lower()
    try:
        port = parts.port
    except ValueError as exc:
        raise ValueError(f"invalid port in url: {url!r}") from exc

    netloc = host
    if ":" in host:
        # IPv6 literal
        netloc = f"[{host}]"
    if port is not None and DEFAULT_PORTS.get(scheme) != port:
        netloc = f"{netloc}:{port}"
    if parts.username:
        userinfo = parts.username
        if parts.password:
            userinfo += f":{parts.password}"
        netloc = f"{userinfo}@{netloc}"

    path = parts.path.rstrip("/")
    return urlunsplit((scheme, netloc, path, parts.query, ""))


def url_fingerprint(normalized_url: str) -> str:
    """Return the SHA-1 hex digest of a normalized URL."""
    return hashlib.sha1(normalized_url.encode("utf-8")).hexdigest()


def default_title(url: str) -> str:
    """Derive a readable title from a URL (host plus path).

    Examples:
        >>> default_title("https://www.example.com/blog/post/")
        'www.example.com/blog/post'
    """
    parts = urlsplit(url.strip())
    host = parts.hostname or ""
    path = parts.path.rstrip("/")
    title = f"{host}{path}"
    return title or url.strip()
