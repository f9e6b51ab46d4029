"""Key-value blob stores backing the catalog between sessions."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol

from diskcache import Cache

LOGGER = logging.getLogger("quickassist.storage")


class SnapshotStore(Protocol):
    def read(self, key: str) -> bytes | None:
        ...

    def write(self, key: str, payload: bytes) -> None:
        ...


class FileSnapshotStore:
    """Stores each key as `<directory>/<key>.json`."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str) -> bytes | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_bytes()
        except OSError as exc:
            LOGGER.warning("Could not read snapshot %s: %s", path, exc)
            return None

    def write(self, key: str, payload: bytes) -> None:
        path = self.path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_bytes(payload)
        tmp_path.replace(path)


class DiskCacheSnapshotStore:
    """Disk-backed key-value store without expiry."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        self._cache: Optional[Cache] = None

    @property
    def cache(self) -> Cache:
        if self._cache is None:
            self.directory.mkdir(parents=True, exist_ok=True)
            self._cache = Cache(str(self.directory))
        return self._cache

    def read(self, key: str) -> bytes | None:
        value = self.cache.get(key)
        if value is None:
            return None
        if isinstance(value, str):
            return value.encode("utf-8")
        if not isinstance(value, bytes):
            LOGGER.warning("Ignoring non-bytes snapshot under %s (%s)", key, type(value).__name__)
            return None
        return value

    def write(self, key: str, payload: bytes) -> None:
        self.cache.set(key, payload, retry=True)

    def close(self) -> None:
        if self._cache is not None:
            self._cache.close()
            self._cache = None


class MemorySnapshotStore:
    """In-process store, handy for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self.blobs: dict[str, bytes] = dict(initial or {})
        self.writes = 0

    def read(self, key: str) -> bytes | None:
        return self.blobs.get(key)

    def write(self, key: str, payload: bytes) -> None:
        self.blobs[key] = payload
        self.writes += 1


def create_snapshot_store(backend: str, directory: Path) -> SnapshotStore:
    normalized = (backend or "file").strip().lower()
    if normalized == "file":
        return FileSnapshotStore(directory)
    if normalized == "diskcache":
        return DiskCacheSnapshotStore(directory)
    if normalized == "memory":
        return MemorySnapshotStore()
    raise ValueError(f"Unknown storage backend: {backend}")
