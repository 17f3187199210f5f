"""Tests for the SQLite article store."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import peewee
import pytest

from readlater_import.core.errors import StorageUnavailableError
from readlater_import.core.types import CanonicalEntry, InsertOutcome, SourceFormat


def _entry(url="https://example.com/a", **kwargs) -> CanonicalEntry:
    return CanonicalEntry(url=url, source_format=kwargs.pop("source_format", SourceFormat.V2), **kwargs)


def test_insert_then_duplicate(store, owner):
    first = store.try_insert(owner.id, _entry())
    second = store.try_insert(owner.id, _entry("https://EXAMPLE.com/a/#frag"))

    assert first.outcome is InsertOutcome.INSERTED
    assert second.outcome is InsertOutcome.DUPLICATE
    assert store.count(owner.id) == 1


def test_same_url_for_two_owners_is_allowed(store, owner):
    bob = store.create_owner("bob")
    assert store.try_insert(owner.id, _entry()).outcome is InsertOutcome.INSERTED
    assert store.try_insert(bob.id, _entry()).outcome is InsertOutcome.INSERTED


def test_unknown_owner_is_a_failed_insert(store):
    result = store.try_insert(9999, _entry())
    assert result.outcome is InsertOutcome.FAILED
    assert "FOREIGN KEY" in result.reason


def test_stored_fields(store, owner):
    created = datetime(2016, 4, 11, 14, 15, 38, tzinfo=timezone(timedelta(hours=2)))
    store.try_insert(
        owner.id,
        _entry(
            content="<p>x</p>",
            tags={"b", "a"},
            is_archived=True,
            is_starred=True,
            created_at=created,
            language="fr",
        ),
    )
    store.try_insert(owner.id, _entry("https://example.com/untitled"))

    first, second = store.list_articles(owner.id)
    assert first["owner"] == owner.id
    assert first["title"] == "example.com/a"
    assert first["content"] == "<p>x</p>"
    assert first["tags"] == ["a", "b"]
    assert first["is_archived"] is True
    assert first["is_starred"] is True
    assert first["language"] == "fr"
    assert first["source_format"] == "v2"
    assert first["created_at"] == datetime(2016, 4, 11, 12, 15, 38)
    assert second["content"] == ""
    assert second["tags"] == []


def test_find_urls_by_hash_and_exists(store, owner):
    entry = _entry()
    store.try_insert(owner.id, entry)
    assert store.find_urls_by_hash(owner.id, entry.fingerprint) == [entry.normalized_url]
    assert store.find_urls_by_hash(owner.id, "0" * 40) == []
    assert store.exists(owner.id, entry.normalized_url) is True
    assert store.exists(owner.id, "https://example.com/other") is False


def test_resolve_owner_by_username_and_id(store, owner):
    assert store.resolve_owner("alice") == owner
    assert store.resolve_owner(str(owner.id), by_id=True) == owner
    assert store.resolve_owner("nobody") is None
    assert store.resolve_owner("alice", by_id=True) is None
    assert store.resolve_owner("424242", by_id=True) is None


def test_duplicate_username_raises(store, owner):
    with pytest.raises(peewee.IntegrityError):
        store.create_owner("alice")


def test_site_headers_are_replaced_per_name(store, owner):
    store.set_site_header(owner.id, "Example.COM", "Cookie", "a=1")
    store.set_site_header(owner.id, "example.com", "Cookie", "a=2")
    store.set_site_header(owner.id, "example.com", "Authorization", "Bearer t")
    store.set_site_header(owner.id, "other.org", "Cookie", "o=1")

    assert store.site_headers(owner.id) == {
        "example.com": {"Cookie": "a=2", "Authorization": "Bearer t"},
        "other.org": {"Cookie": "o=1"},
    }


def test_closed_database_is_unavailable(store, owner):
    store.database.close()
    store.database.connect = _refuse
    with pytest.raises(StorageUnavailableError):
        store.count(owner.id)


def _refuse(*args, **kwargs):
    raise peewee.OperationalError("unable to open database file")
