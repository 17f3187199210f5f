"""Field coercion helpers shared by the format adapters."""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping

from ..core.errors import EntryAdaptError


_TRUE_STRINGS = {"1", "true", "yes", "y", "on"}


def require_mapping(record: Any) -> Mapping[str, Any]:
    if not isinstance(record, Mapping):
        raise EntryAdaptError(f"record is not an object: {type(record).__name__}")
    return record


def as_bool(value: Any) -> bool:
    """Interpret the many ways exports spell a boolean flag."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


def as_text(value: Any) -> str | None:
    """Return a stripped string, or None for empty / non-scalar values."""
    if value is None or isinstance(value, (dict, list, bool)):
        return None
    text = str(value).strip()
    return text or None


def split_tags(value: Any, separator: str = ",") -> set[str]:
    """Turn a separated string or a list of labels into a tag set.

    Lists may contain plain strings or objects with a ``label`` key.
    """
    if value is None:
        return set()
    if isinstance(value, str):
        return {part.strip() for part in value.split(separator) if part.strip()}
    if isinstance(value, Iterable) and not isinstance(value, Mapping):
        tags: set[str] = set()
        for item in value:
            if isinstance(item, Mapping):
                item = item.get("label")
            text = as_text(item)
            if text:
                tags.add(text)
        return tags
    return set()


def parse_tag_list(value: str | None) -> set[str]:
    """Parse a tag column that is either a JSON list or a comma string."""
    text = as_text(value)
    if not text:
        return set()
    if text.startswith("["):
        try:
            return split_tags(json.loads(text))
        except ValueError:
            pass
    return split_tags(text)
