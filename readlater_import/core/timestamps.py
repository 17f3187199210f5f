from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

logger = logging.getLogger(__name__)

# Epoch magnitudes above these thresholds are milliseconds / microseconds.
_MILLIS_THRESHOLD = 1e11
_MICROS_THRESHOLD = 1e14

# Chrome stores microseconds since 1601-01-01.
_WEBKIT_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)

_FALLBACK_FORMATS = (
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
    "%d/%m/%Y %H:%M:%S",
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any, *, now: datetime | None = None) -> datetime:
    """Coerce an export timestamp into an aware UTC datetime.

    Accepts epoch seconds, milliseconds or microseconds (as numbers or numeric
    strings) and ISO-8601 strings. Anything else falls back to ``now``.
    """
    fallback = now or utcnow()
    if value is None or isinstance(value, bool):
        return fallback

    if isinstance(value, (int, float)):
        return _from_epoch(float(value), fallback)

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return fallback
        try:
            return _from_epoch(float(text), fallback)
        except ValueError:
            pass
        parsed = _parse_iso(text)
        if parsed is not None:
            return parsed

    logger.debug("Unparsable timestamp %r, using current time", value)
    return fallback


def webkit_to_datetime(value: Any, *, now: datetime | None = None) -> datetime:
    """Convert a Chrome ``date_added`` value (microseconds since 1601)."""
    fallback = now or utcnow()
    try:
        micros = int(str(value).strip())
    except (TypeError, ValueError):
        return parse_timestamp(value, now=fallback)
    if micros <= 0:
        return fallback
    try:
        return _WEBKIT_EPOCH + timedelta(microseconds=micros)
    except OverflowError:
        return fallback


def _from_epoch(seconds: float, fallback: datetime) -> datetime:
    if seconds <= 0:
        return fallback
    if seconds > _MICROS_THRESHOLD:
        seconds /= 1_000_000
    elif seconds > _MILLIS_THRESHOLD:
        seconds /= 1000
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return fallback


def _parse_iso(text: str) -> datetime | None:
    candidate = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        parsed = None
        for fmt in _FALLBACK_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
