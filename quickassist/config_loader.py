"""Utilities for loading project configuration files."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from .models import SNAPSHOT_KEY
from .query import PREVIEW_CHAR_LIMIT


PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"


class StorageConfig(BaseModel):
    backend: Literal["file", "diskcache", "memory"] = "file"
    path: str = "data/storage"
    key: str = SNAPSHOT_KEY


class ExportsConfig(BaseModel):
    directory: str = "outputs/exports"


class UIConfig(BaseModel):
    preview_chars: int = Field(alias="preview-chars", default=PREVIEW_CHAR_LIMIT, ge=1)


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class AppConfig(BaseModel):
    storage: StorageConfig = Field(default_factory=StorageConfig)
    exports: ExportsConfig = Field(default_factory=ExportsConfig)
    ui: UIConfig = Field(default_factory=UIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def resolve(self, relative: str, root: Path | None = None) -> Path:
        """Resolve a configured path against the project root."""
        path = Path(relative).expanduser()
        if path.is_absolute():
            return path
        return ((root or PROJECT_ROOT) / path).resolve()


def _load_yaml(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def load_app_config(path: Path | None = None) -> AppConfig:
    """Return application config from `app.config.yaml`."""
    target = path or DATA_DIR / "app.config.yaml"
    data = _load_yaml(target)
    if not isinstance(data, dict):
        raise ValueError(f"{target.name} must contain a mapping of settings.")
    return AppConfig.model_validate(data)
