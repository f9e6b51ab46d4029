from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from quickassist.catalog_store import CatalogStore
from quickassist.config_loader import AppConfig
from quickassist.main import create_app
from quickassist.storage import FileSnapshotStore, MemorySnapshotStore


class StepClock:
    """Deterministic millisecond clock for id generation."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        return value


def make_config(tmp_path: Path, backend: str = "file") -> AppConfig:
    return AppConfig.model_validate(
        {
            "storage": {"backend": backend, "path": str(tmp_path / "storage")},
            "exports": {"directory": str(tmp_path / "exports")},
        }
    )


@pytest.fixture
def make_clock():
    return StepClock


@pytest.fixture
def memory_snapshots() -> MemorySnapshotStore:
    return MemorySnapshotStore()


@pytest.fixture
def store(memory_snapshots) -> CatalogStore:
    catalog = CatalogStore(memory_snapshots, clock=StepClock())
    catalog.load()
    return catalog


@pytest.fixture
def file_store(tmp_path) -> CatalogStore:
    catalog = CatalogStore(FileSnapshotStore(tmp_path / "storage"), clock=StepClock())
    catalog.load()
    return catalog


async def _prepare_app(tmp_path: Path) -> tuple[AsyncClient, FastAPI]:
    app = create_app(make_config(tmp_path))
    transport = ASGITransport(app=app)
    async_client = AsyncClient(transport=transport, base_url="http://testserver", timeout=10.0)
    async_client.app = app  # type: ignore[attr-defined]
    return async_client, app


@pytest_asyncio.fixture
async def client(tmp_path):
    async_client, _app = await _prepare_app(tmp_path)
    try:
        yield async_client
    finally:
        await async_client.aclose()
