"""Live catalog of canned responses with write-through persistence."""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, Sequence

import orjson
from pydantic import ValidationError

from .models import DEFAULT_RECORDS, SNAPSHOT_KEY, Record, RecordNotFound, require_fields
from .storage import SnapshotStore

logger = logging.getLogger(__name__)


def _wall_clock_ms() -> int:
    return time.time_ns() // 1_000_000


def encode_records(records: Iterable[Record], *, indent: bool = False) -> bytes:
    payload = [record.as_json() for record in records]
    if indent:
        return orjson.dumps(payload, option=orjson.OPT_INDENT_2)
    return orjson.dumps(payload)


class CatalogStore:
    """Single owner of the in-memory catalog.

    Every mutation builds the new sequence, writes it through the snapshot
    store and only then swaps it in, so memory never runs ahead of disk.
    """

    def __init__(
        self,
        snapshots: SnapshotStore,
        *,
        key: str = SNAPSHOT_KEY,
        clock: Callable[[], int] = _wall_clock_ms,
    ) -> None:
        self.snapshots = snapshots
        self.key = key
        self._clock = clock
        self._records: list[Record] = list(DEFAULT_RECORDS)
        self._last_issued_id = 0
        self.revision = 0

    # ------------------------------------------------------------------ #
    # Persistence
    # ------------------------------------------------------------------ #

    def load(self) -> None:
        records = self._decode(self.snapshots.read(self.key))
        if records is None:
            logger.info("No usable snapshot under %s; starting from the starter catalog", self.key)
            records = list(DEFAULT_RECORDS)
        self._records = records
        self.revision += 1

    def save(self) -> None:
        self.snapshots.write(self.key, encode_records(self._records))

    def _decode(self, raw: bytes | None) -> list[Record] | None:
        if raw is None:
            return None
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            logger.warning("Stored catalog is not valid JSON (%s); falling back to defaults", exc)
            return None
        if not isinstance(data, list):
            logger.warning("Stored catalog is a %s, not a list; falling back to defaults", type(data).__name__)
            return None

        records: list[Record] = []
        seen: set[int] = set()
        for position, item in enumerate(data):
            try:
                record = Record.model_validate(item)
            except ValidationError as exc:
                logger.warning("Skipping malformed stored entry #%s: %s", position, exc.errors()[0]["msg"])
                continue
            if record.id in seen:
                logger.warning("Skipping stored entry #%s: duplicate id %s", position, record.id)
                continue
            seen.add(record.id)
            records.append(record)
        return records

    def _commit(self, records: list[Record]) -> None:
        self.snapshots.write(self.key, encode_records(records))
        self._records = records
        self.revision += 1

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def list(self) -> tuple[Record, ...]:
        return tuple(self._records)

    def ids(self) -> set[int]:
        return {record.id for record in self._records}

    def find_by_id(self, record_id: int) -> Record:
        for record in self._records:
            if record.id == record_id:
                return record
        raise RecordNotFound(record_id)

    def __len__(self) -> int:
        return len(self._records)

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    def _next_id(self) -> int:
        # Wall-clock ids can repeat within one millisecond or after a clock step back.
        existing = self.ids()
        candidate = max(self._clock(), self._last_issued_id + 1)
        while candidate in existing:
            candidate += 1
        self._last_issued_id = candidate
        return candidate

    def create(self, title: str, text: str) -> Record:
        require_fields(title, text)
        record = Record(id=self._next_id(), title=title, text=text)
        self._commit([*self._records, record])
        logger.info("Created response %s (%r)", record.id, record.title)
        return record

    def update(self, record_id: int, title: str, text: str) -> Record:
        current = self.find_by_id(record_id)
        require_fields(title, text)
        updated = current.model_copy(update={"title": title, "text": text})
        self._commit([updated if record.id == record_id else record for record in self._records])
        logger.info("Updated response %s", record_id)
        return updated

    def delete(self, record_id: int) -> bool:
        remaining = [record for record in self._records if record.id != record_id]
        if len(remaining) == len(self._records):
            logger.debug("Delete of unknown response %s ignored", record_id)
            return False
        self._commit(remaining)
        logger.info("Deleted response %s", record_id)
        return True

    def replace(self, records: Sequence[Record]) -> None:
        self._commit(list(records))
        logger.info("Catalog replaced; now holding %s responses", len(self._records))
