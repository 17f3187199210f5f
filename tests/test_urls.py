"""Tests for URL normalization and derived titles."""

import pytest

from readlater_import.core.urls import default_title, normalize_url, url_fingerprint


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("HTTPS://Example.COM:443/a/#top", "https://example.com/a"),
        ("http://example.com:80/", "http://example.com"),
        ("http://example.com", "http://example.com"),
        ("http://example.com:8080/x/", "http://example.com:8080/x"),
        ("https://e.com/p/?b=2&a=1#frag", "https://e.com/p?b=2&a=1"),
        ("  https://e.com/Path/Case  ", "https://e.com/Path/Case"),
    ],
)
def test_normalize_url(raw, expected):
    assert normalize_url(raw) == expected


def test_equivalent_urls_share_one_key():
    variants = [
        "https://example.com/article",
        "https://example.com/article/",
        "https://example.com/article#comments",
        "HTTPS://EXAMPLE.com/article",
        "https://example.com:443/article",
    ]
    assert len({normalize_url(url) for url in variants}) == 1


def test_https_and_http_stay_distinct():
    assert normalize_url("http://example.com/a") != normalize_url("https://example.com/a")


@pytest.mark.parametrize("raw", ["", "   ", "not a url", "/relative/path", "example.com/path"])
def test_normalize_url_rejects_relative_or_empty(raw):
    with pytest.raises(ValueError):
        normalize_url(raw)


def test_fingerprint_is_sha1_hex():
    fingerprint = url_fingerprint("https://example.com")
    assert len(fingerprint) == 40
    assert fingerprint == url_fingerprint("https://example.com")


def test_default_title_uses_host_and_path():
    assert default_title("https://www.example.com/blog/post/") == "www.example.com/blog/post"
    assert default_title("https://example.com") == "example.com"
