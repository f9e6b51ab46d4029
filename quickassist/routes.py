"""API routers for the QuickAssist canned-response service."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import Response
from pydantic import BaseModel, Field
from starlette.datastructures import UploadFile

from .catalog_store import CatalogStore
from .changes import PendingChanges, StaleChange, UnknownChange
from .config_loader import AppConfig
from .exporter import BackupExporter
from .models import Record, RecordNotFound, ValidationFailed
from .query import filter_records, preview
from .reconciler import ImportFormatError, ImportMode, parse_candidates, reconcile

router = APIRouter()
logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------- #
# Pydantic schemas
# --------------------------------------------------------------------------- #


class ResponseItem(BaseModel):
    id: int
    title: str
    text: str
    preview: str


class ResponseList(BaseModel):
    items: list[ResponseItem]
    total: int
    query: str = ""


class ResponsePayload(BaseModel):
    title: str = ""
    text: str = ""


class PendingChangeResponse(BaseModel):
    token: str
    kind: str
    summary: str
    record_id: int | None = Field(alias="recordId", default=None)
    incoming: int | None = None
    rejected: int | None = None


class RejectedEntryItem(BaseModel):
    position: int
    reason: str


class ImportResponse(BaseModel):
    mode: str
    applied: bool
    added: int = 0
    skipped: int = 0
    total: int
    rejected: list[RejectedEntryItem] = Field(default_factory=list)
    pending: PendingChangeResponse | None = None


class CopyFailure(BaseModel):
    record_id: int | None = Field(alias="recordId", default=None)
    error: str = ""


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #


def _request_state(request: Request):
    return request.app.state


def _to_item(record: Record, limit: int) -> ResponseItem:
    return ResponseItem(id=record.id, title=record.title, text=record.text, preview=preview(record.text, limit))


def _not_found(exc: LookupError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


async def _read_import_body(request: Request) -> bytes:
    content_type = (request.headers.get("content-type") or "").lower()
    if "multipart/form-data" not in content_type:
        return await request.body()
    form = await request.form()
    upload = form.get("file")
    if not isinstance(upload, UploadFile):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No backup file was uploaded.")
    return await upload.read()


# --------------------------------------------------------------------------- #
# Routes
# --------------------------------------------------------------------------- #


@router.get("/responses", response_model=ResponseList)
async def list_responses(request: Request, q: str = "") -> ResponseList:
    state = _request_state(request)
    store: CatalogStore = state.catalog_store
    app_config: AppConfig = state.app_config

    matches = filter_records(store.list(), q)
    items = [_to_item(record, app_config.ui.preview_chars) for record in matches]
    return ResponseList(items=items, total=len(items), query=q)


@router.get("/responses/{record_id}", response_model=ResponseItem)
async def get_response(request: Request, record_id: int) -> ResponseItem:
    state = _request_state(request)
    store: CatalogStore = state.catalog_store
    try:
        record = store.find_by_id(record_id)
    except RecordNotFound as exc:
        raise _not_found(exc) from exc
    return _to_item(record, state.app_config.ui.preview_chars)


@router.post("/responses", response_model=ResponseItem, status_code=status.HTTP_201_CREATED)
async def create_response(request: Request, payload: ResponsePayload) -> ResponseItem:
    state = _request_state(request)
    store: CatalogStore = state.catalog_store
    try:
        record = store.create(payload.title, payload.text)
    except ValidationFailed as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _to_item(record, state.app_config.ui.preview_chars)


@router.put("/responses/{record_id}", response_model=ResponseItem)
async def update_response(request: Request, record_id: int, payload: ResponsePayload) -> ResponseItem:
    state = _request_state(request)
    store: CatalogStore = state.catalog_store
    try:
        record = store.update(record_id, payload.title, payload.text)
    except RecordNotFound as exc:
        raise _not_found(exc) from exc
    except ValidationFailed as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _to_item(record, state.app_config.ui.preview_chars)


@router.post("/responses/{record_id}/delete", response_model=PendingChangeResponse)
async def propose_delete(request: Request, record_id: int) -> PendingChangeResponse:
    changes: PendingChanges = _request_state(request).pending_changes
    change = changes.propose_delete(record_id)
    return PendingChangeResponse.model_validate(change.describe())


@router.get("/changes/{token}", response_model=PendingChangeResponse)
async def get_change(request: Request, token: str) -> PendingChangeResponse:
    changes: PendingChanges = _request_state(request).pending_changes
    try:
        change = changes.get(token)
    except UnknownChange as exc:
        raise _not_found(exc) from exc
    return PendingChangeResponse.model_validate(change.describe())


@router.post("/changes/{token}/commit")
async def commit_change(request: Request, token: str) -> dict[str, Any]:
    changes: PendingChanges = _request_state(request).pending_changes
    try:
        outcome = changes.commit(token)
    except UnknownChange as exc:
        raise _not_found(exc) from exc
    except StaleChange as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return outcome.as_dict()


@router.delete("/changes/{token}", status_code=status.HTTP_204_NO_CONTENT)
async def discard_change(request: Request, token: str) -> Response:
    changes: PendingChanges = _request_state(request).pending_changes
    changes.discard(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/export")
async def export_backup(request: Request) -> Response:
    state = _request_state(request)
    store: CatalogStore = state.catalog_store
    exporter: BackupExporter = state.backup_exporter

    filename = exporter.filename()
    return Response(
        content=exporter.render(store.list()),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import", response_model=ImportResponse)
async def import_backup(request: Request, mode: ImportMode) -> ImportResponse:
    state = _request_state(request)
    store: CatalogStore = state.catalog_store
    changes: PendingChanges = state.pending_changes

    body = await _read_import_body(request)
    try:
        candidates = parse_candidates(body)
    except ImportFormatError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    rejected = [RejectedEntryItem(position=entry.position, reason=entry.reason) for entry in candidates.rejected]

    if mode is ImportMode.REPLACE:
        change = changes.propose_replace(candidates)
        return ImportResponse(
            mode=mode.value,
            applied=False,
            total=len(store),
            rejected=rejected,
            pending=PendingChangeResponse.model_validate(change.describe()),
        )

    result = reconcile(store.list(), candidates.records, mode)
    store.replace(result.records)
    logger.info("Backup merged: added %s missing responses", result.added)
    return ImportResponse(
        mode=mode.value,
        applied=True,
        added=result.added,
        skipped=result.skipped,
        total=len(store),
        rejected=rejected,
    )


@router.post("/events/copy-failed", status_code=status.HTTP_204_NO_CONTENT)
async def report_copy_failure(payload: CopyFailure) -> Response:
    logger.error("Failed to copy response %s to clipboard: %s", payload.record_id, payload.error or "unknown error")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
