"""Tests for the import orchestration."""

from __future__ import annotations

import json
import logging

import pytest

from readlater_import.config import AppConfig, ExtractConfig, FetchConfig
from readlater_import.core.errors import FatalParseError, SourceNotFoundError, StorageUnavailableError
from readlater_import.core.types import (
    CanonicalEntry,
    ImportSession,
    InsertOutcome,
    InsertResult,
    RunSummary,
    SessionContext,
    SourceFormat,
)
from readlater_import.fetch.fetcher import FetchResult
from readlater_import.fetch.refresher import ContentRefresher
from readlater_import.runner import Importer, ImportState, run_import


def _session(owner, path, fmt="v2", **kwargs) -> ImportSession:
    return ImportSession(owner_id=owner.id, file_path=path, format=fmt, **kwargs)


def _run(owner, store, path, fmt="v2", **kwargs) -> RunSummary:
    return Importer(_session(owner, path, fmt, **kwargs), store).run()


def test_three_record_scenario(store, owner, write_json):
    store.try_insert(owner.id, _canonical("https://example.com/already"))
    path = write_json(
        [
            {"url": "https://example.com/new", "title": "New"},
            {"url": "https://example.com/already/", "title": "Duplicate"},
            {"title": "No url here"},
        ]
    )

    summary = _run(owner, store, path)

    assert summary == RunSummary(imported=1, skipped=1, failed=1)
    assert store.count(owner.id) == 2


def test_rerun_is_idempotent(store, owner, write_json):
    path = write_json([{"url": f"https://example.com/{n}"} for n in range(5)])

    first = _run(owner, store, path)
    second = _run(owner, store, path)

    assert first == RunSummary(imported=5)
    assert second == RunSummary(skipped=5)
    assert store.count(owner.id) == 5


def test_equivalent_urls_in_one_file_are_saved_once(store, owner, write_json):
    path = write_json(
        [
            {"url": "https://example.com/article"},
            {"url": "HTTPS://Example.com:443/article/#comments"},
            {"url": "http://example.com/article"},
        ]
    )

    summary = _run(owner, store, path)

    assert summary == RunSummary(imported=2, skipped=1)


def test_mark_as_read_overrides_every_entry(store, owner, write_json):
    path = write_json(
        [
            {"url": "https://example.com/a", "is_archived": 0},
            {"url": "https://example.com/b", "is_archived": 1},
        ]
    )

    _run(owner, store, path, mark_as_read=True)

    assert [row["is_archived"] for row in store.list_articles(owner.id)] == [True, True]


def test_without_mark_as_read_flags_are_kept(store, owner, write_json):
    path = write_json(
        [
            {"url": "https://example.com/a", "is_archived": 0},
            {"url": "https://example.com/b", "is_archived": 1},
        ]
    )

    _run(owner, store, path)

    assert [row["is_archived"] for row in store.list_articles(owner.id)] == [False, True]


def test_bad_records_do_not_affect_neighbours(store, owner, write_json, caplog):
    path = write_json(
        [
            {"url": "https://example.com/1"},
            "not an object",
            {"url": "relative/path"},
            {"url": "https://example.com/2"},
        ]
    )

    logger = logging.getLogger("tests.importer")
    with caplog.at_level(logging.WARNING, logger="tests.importer"):
        summary = Importer(_session(owner, path), store, logger=logger).run()

    assert summary == RunSummary(imported=2, failed=2)
    failures = [record for record in caplog.records if getattr(record, "event", None) == "entry_failed"]
    assert [record.position for record in failures] == [2, 3]
    assert failures[1].url == "relative/path"


def test_chrome_bookmark_without_url_is_counted_as_failed(store, owner, write_json):
    path = write_json(
        {
            "roots": {
                "bookmark_bar": {
                    "type": "folder",
                    "children": [
                        {"type": "url", "name": "ok", "url": "https://example.com/a"},
                        {"type": "url", "name": "broken"},
                    ],
                }
            }
        }
    )

    assert _run(owner, store, path, fmt="chrome") == RunSummary(imported=1, failed=1)


def test_invalid_container_aborts_without_writes(store, owner, write_json):
    path = write_json({"url": "https://example.com/a"})
    importer = Importer(_session(owner, path), store)

    with pytest.raises(FatalParseError):
        importer.run()

    assert importer.state is ImportState.FATAL_ABORTED
    assert store.count(owner.id) == 0
    with pytest.raises(RuntimeError):
        importer.summary


def test_truncated_export_keeps_entries_before_the_error(store, owner, tmp_path):
    path = tmp_path / "broken.json"
    path.write_text('[{"url": "https://example.com/ok"}, {"url": ', encoding="utf-8")

    with pytest.raises(FatalParseError):
        _run(owner, store, path)

    assert store.count(owner.id) == 1


def test_invalid_utf8_is_a_parse_error(store, owner, tmp_path):
    path = tmp_path / "latin1.json"
    path.write_bytes(b'[{"url": "https://example.com/caf\xe9"}]')

    with pytest.raises(FatalParseError, match="UTF-8"):
        _run(owner, store, path)


def test_utf8_bom_is_accepted(store, owner, tmp_path):
    path = tmp_path / "bom.json"
    path.write_bytes(b"\xef\xbb\xbf" + json.dumps([{"url": "https://example.com/bom"}]).encode())

    assert _run(owner, store, path) == RunSummary(imported=1)


def test_missing_file(store, owner, tmp_path):
    importer = Importer(_session(owner, tmp_path / "nope.json"), store)
    with pytest.raises(SourceNotFoundError, match="nope.json"):
        importer.run()
    assert importer.state is ImportState.FATAL_ABORTED


def test_summary_requires_a_run_and_runs_once(store, owner, write_json):
    importer = Importer(_session(owner, write_json([])), store)
    with pytest.raises(RuntimeError):
        importer.summary

    assert importer.run() == RunSummary()
    assert importer.summary == RunSummary()
    assert importer.state is ImportState.FINISHED
    with pytest.raises(RuntimeError):
        importer.run()


def test_lost_storage_aborts_the_run(owner, write_json):
    class BrokenStorage:
        def find_urls_by_hash(self, owner_id, url_hash):
            return []

        def try_insert(self, owner_id, entry):
            raise StorageUnavailableError("database is locked")

    importer = Importer(_session(owner, write_json([{"url": "https://example.com/a"}])), BrokenStorage())
    with pytest.raises(StorageUnavailableError):
        importer.run()
    assert importer.state is ImportState.FATAL_ABORTED


def test_failed_insert_is_counted(owner, write_json):
    class RejectingStorage:
        def find_urls_by_hash(self, owner_id, url_hash):
            return []

        def try_insert(self, owner_id, entry):
            return InsertResult(InsertOutcome.FAILED, reason="CHECK constraint failed")

    path = write_json([{"url": "https://example.com/a"}, {"url": "https://example.com/b"}])
    summary = Importer(_session(owner, path), RejectingStorage()).run()
    assert summary == RunSummary(failed=2)


def test_progress_callback_sees_every_record(store, owner, write_json):
    seen = []
    path = write_json([{"url": "https://example.com/a"}, {}, {"url": "https://example.com/a"}])

    Importer(_session(owner, path), store, on_record=seen.append).run()

    assert [summary.total for summary in seen] == [1, 2, 3]
    assert seen[-1] == RunSummary(imported=1, skipped=1, failed=1)


def test_refresh_timeout_keeps_export_content(store, owner, write_json):
    def timed_out(url, **kwargs):
        return FetchResult(url=url, status_code=None, text=None, error="ReadTimeout: timed out")

    context = SessionContext(owner=owner)
    refresher = ContentRefresher(FetchConfig(timeout_seconds=0.1), ExtractConfig(), context, fetch=timed_out)
    path = write_json([{"url": "https://example.com/slow", "content": "<p>from export</p>"}])

    summary = Importer(_session(owner, path), store, refresher=refresher).run()

    assert summary == RunSummary(imported=1)
    assert store.list_articles(owner.id)[0]["content"] == "<p>from export</p>"
    assert refresher.stats.failed == 1


def test_refresh_is_skipped_for_known_entries(store, owner, write_json):
    calls = []

    def fetch(url, **kwargs):
        calls.append(url)
        return FetchResult(url=url, status_code=200, text="<p>live</p>", error=None, content_type="text/html")

    store.try_insert(owner.id, _canonical("https://example.com/known"))
    refresher = ContentRefresher(
        FetchConfig(), ExtractConfig(primary="bs4", fallback=[]), SessionContext(owner=owner), fetch=fetch
    )
    path = write_json([{"url": "https://example.com/known"}, {"url": "https://example.com/fresh"}])

    Importer(_session(owner, path), store, refresher=refresher).run()

    assert calls == ["https://example.com/fresh"]
    assert store.list_articles(owner.id)[1]["content"] == "live"


def test_run_import_with_content_update_disabled(store, owner, write_json):
    path = write_json([{"url": "https://example.com/a", "content": "kept"}])
    session = _session(owner, path, disable_content_update=True)

    summary = run_import(session, store, AppConfig(), SessionContext(owner=owner), show_progress=False)

    assert summary == RunSummary(imported=1)
    assert store.list_articles(owner.id)[0]["content"] == "kept"


def test_run_import_rejects_foreign_context(store, owner, write_json):
    bob = store.create_owner("bob")
    session = _session(owner, write_json([]), disable_content_update=True)
    with pytest.raises(ValueError):
        run_import(session, store, AppConfig(), SessionContext(owner=bob), show_progress=False)


def test_instapaper_file_end_to_end(store, owner, tmp_path):
    path = tmp_path / "instapaper.csv"
    path.write_text(
        "URL,Title,Selection,Folder\r\n"
        'https://example.com/a,"Multi\r\nline",,Starred\r\n'
        "https://example.com/b,B,,Unread\r\n",
        encoding="utf-8",
        newline="",
    )

    summary = _run(owner, store, path, fmt="instapaper")

    assert summary == RunSummary(imported=2)
    first, second = store.list_articles(owner.id)
    assert first["title"] == "Multi\r\nline"
    assert (first["is_archived"], first["is_starred"]) == (True, True)
    assert second["is_archived"] is False


def _canonical(url) -> CanonicalEntry:
    return CanonicalEntry(url=url, source_format=SourceFormat.V2)
