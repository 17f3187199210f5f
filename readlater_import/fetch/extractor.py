"""
Readable content extraction with multiple fallback strategies.

This module provides a chain of extraction methods:
1. readability: Mozilla's readability algorithm, keeps simplified HTML (default)
2. trafilatura: Purpose-built main-content extraction, plain text
3. bs4: BeautifulSoup plain text extraction (last resort)
"""

from __future__ import annotations

from typing import Callable

from bs4 import BeautifulSoup
import trafilatura
from readability import Document


def extract_content(html: str, primary: str, fallback: list[str]) -> str | None:
    """Extract the readable part of a page using a chain of extractors.

    Tries each extraction method in order until one produces non-empty
    output. An extractor that raises is treated like one that found nothing.

    Args:
        html: The HTML content to extract from
        primary: Name of the primary extraction method to try first
        fallback: List of fallback method names to try if primary fails

    Returns:
        Extracted content with leading/trailing whitespace stripped,
        or None if all methods fail

    Examples:
        >>> extract_content(html, "readability", ["trafilatura", "bs4"])
        "<div><p>Article content here...</p></div>"
    """
    order = [primary] + [name for name in fallback if name != primary]
    for method in order:
        extractor = _get_extractor(method)
        if not extractor:
            continue
        try:
            text = extractor(html)
        except Exception:  # noqa: BLE001
            continue
        if text and text.strip():
            return text.strip()
    return None


def extract_title(html: str) -> str | None:
    """Return the page title, preferring readability's cleaned short title."""
    try:
        title = Document(html).short_title()
    except Exception:  # noqa: BLE001
        title = None
    if title and title.strip():
        return title.strip()
    soup = BeautifulSoup(html, "html.parser")
    if soup.title and soup.title.string:
        return soup.title.string.strip() or None
    return None


def _get_extractor(name: str) -> Callable[[str], str | None] | None:
    if name == "readability":
        return _extract_readability
    if name == "trafilatura":
        return _extract_trafilatura
    if name == "bs4":
        return _extract_bs4
    return None


def _extract_readability(html: str) -> str | None:
    doc = Document(html)
    content_html = doc.summary(html_partial=True)
    # readability returns an empty wrapper when it finds no article body
    if not _extract_bs4(content_html):
        return None
    return content_html


def _extract_trafilatura(html: str) -> str | None:
    return trafilatura.extract(html)


def _extract_bs4(html: str) -> str | None:
    soup = BeautifulSoup(html, "html.parser")
    # Remove non-content tags
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    text = soup.get_text(separator="\n")
    cleaned = "\n".join([line.strip() for line in text.splitlines() if line.strip()])
    return cleaned if cleaned else None
