"""FastAPI entry point for the QuickAssist service."""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import routes
from .catalog_store import CatalogStore
from .changes import PendingChanges
from .config_loader import PROJECT_ROOT, AppConfig, load_app_config
from .exporter import BackupExporter
from .storage import create_snapshot_store

LOGGER = logging.getLogger(__name__)


def create_app(config: AppConfig | None = None, *, root: Path | None = None) -> FastAPI:
    app = FastAPI(
        title="QuickAssist",
        description="Personal catalog of canned responses with backup and restore.",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:8000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app_config = config or load_app_config()
    base = root or PROJECT_ROOT
    logging.getLogger("quickassist").setLevel(app_config.logging.level)

    snapshots = create_snapshot_store(app_config.storage.backend, app_config.resolve(app_config.storage.path, base))
    catalog_store = CatalogStore(snapshots, key=app_config.storage.key)
    catalog_store.load()
    LOGGER.info("Loaded %s responses from %s storage", len(catalog_store), app_config.storage.backend)

    app.state.app_config = app_config
    app.state.catalog_store = catalog_store
    app.state.pending_changes = PendingChanges(catalog_store)
    app.state.backup_exporter = BackupExporter(app_config.resolve(app_config.exports.directory, base))

    app.include_router(routes.router)

    return app


app = create_app()
