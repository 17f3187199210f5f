"""Shared fixtures: a temporary article database with one owner."""

from __future__ import annotations

import json

import pytest

from readlater_import.storage import ArticleStore


@pytest.fixture
def store(tmp_path):
    article_store = ArticleStore.open(tmp_path / "articles.db")
    yield article_store
    article_store.close()


@pytest.fixture
def owner(store):
    return store.create_owner("alice")


@pytest.fixture
def write_json(tmp_path):
    """Write a JSON document to a file and return its path."""

    def _write(data, name: str = "export.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write
