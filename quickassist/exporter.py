"""Backup export helpers."""

from __future__ import annotations

from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterable

from .catalog_store import encode_records
from .models import Record

BACKUP_PREFIX = "QuickAssist_Backup_"


class BackupExporter:
    """Renders the catalog as a pretty-printed JSON backup."""

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = base_dir

    def filename(self, today: date | None = None) -> str:
        today = today or datetime.now(timezone.utc).date()
        return f"{BACKUP_PREFIX}{today.isoformat()}.json"

    def render(self, records: Iterable[Record]) -> bytes:
        return encode_records(records, indent=True)

    def export(self, records: Iterable[Record], today: date | None = None) -> Path:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        path = self.base_dir / self.filename(today)
        path.write_bytes(self.render(records))
        return path
