"""Import semantics for backup files: merge into, or replace, the catalog."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

import orjson
from pydantic import ValidationError

from .models import QuickAssistError, Record, ValidationFailed, require_fields

logger = logging.getLogger(__name__)


class ImportFormatError(QuickAssistError, ValueError):
    """Raised when a backup file is not a JSON array."""


class ImportMode(str, Enum):
    MERGE = "merge"
    REPLACE = "replace"


@dataclass(slots=True)
class RejectedEntry:
    position: int
    reason: str


@dataclass(slots=True)
class CandidateSet:
    """Validated records parsed from a backup plus the entries held back."""

    records: list[Record] = field(default_factory=list)
    rejected: list[RejectedEntry] = field(default_factory=list)


@dataclass(slots=True)
class ReconcileResult:
    mode: ImportMode
    records: list[Record]
    added: int
    skipped: int = 0

    def as_dict(self) -> dict[str, object]:
        return {"mode": self.mode.value, "added": self.added, "skipped": self.skipped, "total": len(self.records)}


def parse_candidates(text: str | bytes) -> CandidateSet:
    """Parse untrusted backup text into validated records.

    Elements that do not satisfy the record contract, or that reuse an id
    seen earlier in the same file, are quarantined in `rejected`.
    """
    try:
        data = orjson.loads(text)
    except orjson.JSONDecodeError as exc:
        raise ImportFormatError(f"Error reading file: {exc}") from exc
    if not isinstance(data, list):
        raise ImportFormatError("This file doesn't look right. Are you sure it's a QuickAssist backup?")

    candidates = CandidateSet()
    seen: set[int] = set()
    for position, item in enumerate(data):
        try:
            record = Record.model_validate(item)
        except ValidationError as exc:
            error = exc.errors()[0]
            location = ".".join(str(part) for part in error.get("loc", ())) or "entry"
            candidates.rejected.append(RejectedEntry(position, f"{location}: {error['msg']}"))
            continue
        try:
            require_fields(record.title, record.text)
        except ValidationFailed:
            candidates.rejected.append(RejectedEntry(position, "title and text must not be empty"))
            continue
        if record.id in seen:
            candidates.rejected.append(RejectedEntry(position, f"duplicate id {record.id}"))
            continue
        seen.add(record.id)
        candidates.records.append(record)

    if candidates.rejected:
        logger.warning(
            "Quarantined %s of %s imported entries", len(candidates.rejected), len(data)
        )
    return candidates


def merge(current: Sequence[Record], candidates: Sequence[Record]) -> ReconcileResult:
    existing_ids = {record.id for record in current}
    new_items = [record for record in candidates if record.id not in existing_ids]
    return ReconcileResult(
        mode=ImportMode.MERGE,
        records=[*current, *new_items],
        added=len(new_items),
        skipped=len(candidates) - len(new_items),
    )


def replace(candidates: Sequence[Record]) -> ReconcileResult:
    return ReconcileResult(mode=ImportMode.REPLACE, records=list(candidates), added=len(candidates))


def reconcile(current: Sequence[Record], candidates: Sequence[Record], mode: ImportMode) -> ReconcileResult:
    mode = ImportMode(mode)
    if mode is ImportMode.MERGE:
        return merge(current, candidates)
    return replace(candidates)
