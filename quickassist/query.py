"""Incremental search over the catalog."""

from __future__ import annotations

from typing import Iterable

from .models import Record

PREVIEW_CHAR_LIMIT = 100


def matches(record: Record, term: str) -> bool:
    needle = term.lower()
    return needle in record.title.lower() or needle in record.text.lower()


def filter_records(records: Iterable[Record], term: str | None = "") -> list[Record]:
    """Return records whose title or text contains `term`, ignoring case.

    An empty term matches everything and catalog order is kept.
    """
    if not term:
        return list(records)
    return [record for record in records if matches(record, term)]


def preview(text: str, limit: int = PREVIEW_CHAR_LIMIT) -> str:
    if len(text) > limit:
        return text[:limit] + "..."
    return text
