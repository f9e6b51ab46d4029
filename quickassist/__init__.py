"""QuickAssist: a personal catalog of canned responses."""

from __future__ import annotations

from .catalog_store import CatalogStore
from .models import DEFAULT_RECORDS, Record, RecordNotFound, ValidationFailed
from .query import filter_records
from .reconciler import ImportFormatError, ImportMode, parse_candidates, reconcile

__all__ = [
    "CatalogStore",
    "DEFAULT_RECORDS",
    "ImportFormatError",
    "ImportMode",
    "Record",
    "RecordNotFound",
    "ValidationFailed",
    "filter_records",
    "parse_candidates",
    "reconcile",
]
