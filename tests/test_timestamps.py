"""Tests for export timestamp coercion."""

from datetime import datetime, timezone

import pytest

from readlater_import.core.timestamps import parse_timestamp, webkit_to_datetime


NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)
EPOCH = 1466000000
EXPECTED = datetime.fromtimestamp(EPOCH, tz=timezone.utc)


@pytest.mark.parametrize(
    "value",
    [EPOCH, float(EPOCH), str(EPOCH), EPOCH * 1000, str(EPOCH * 1000), EPOCH * 1_000_000],
)
def test_epoch_seconds_millis_and_micros(value):
    assert parse_timestamp(value, now=NOW) == EXPECTED


def test_iso_with_z_suffix():
    assert parse_timestamp("2016-08-25T12:05:00Z", now=NOW) == datetime(
        2016, 8, 25, 12, 5, tzinfo=timezone.utc
    )


def test_iso_with_compact_offset_is_converted_to_utc():
    assert parse_timestamp("2016-04-11T16:15:38+0200", now=NOW) == datetime(
        2016, 4, 11, 14, 15, 38, tzinfo=timezone.utc
    )


def test_naive_datetime_string_is_utc():
    assert parse_timestamp("2016-04-11 16:15:38", now=NOW) == datetime(
        2016, 4, 11, 16, 15, 38, tzinfo=timezone.utc
    )


@pytest.mark.parametrize("value", [None, "", "yesterday", True, {"a": 1}, -5, 0])
def test_unparsable_values_fall_back_to_now(value):
    assert parse_timestamp(value, now=NOW) == NOW


def test_webkit_microseconds_since_1601():
    # 13118000000 seconds after 1601-01-01 is 1473526400 seconds after 1970-01-01
    assert webkit_to_datetime("13118000000000000", now=NOW) == datetime.fromtimestamp(
        1473526400, tz=timezone.utc
    )


def test_webkit_invalid_falls_back():
    assert webkit_to_datetime("garbage", now=NOW) == NOW
    assert webkit_to_datetime("0", now=NOW) == NOW
