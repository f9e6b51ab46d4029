"""Two-step propose/commit protocol for destructive catalog changes."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from .catalog_store import CatalogStore
from .models import QuickAssistError, RecordNotFound
from .reconciler import CandidateSet, ImportMode, ReconcileResult, reconcile

logger = logging.getLogger(__name__)

MAX_OPEN_CHANGES = 16


class UnknownChange(QuickAssistError, LookupError):
    """Raised when a token does not name an open proposal."""


class StaleChange(QuickAssistError, RuntimeError):
    """Raised when the catalog moved on after a proposal was made."""


class ChangeKind(str, Enum):
    DELETE = "delete"
    IMPORT_REPLACE = "import-replace"


@dataclass(slots=True)
class PendingChange:
    token: str
    summary: str
    revision: int

    kind: ClassVar[ChangeKind]

    def describe(self) -> dict[str, Any]:
        return {"token": self.token, "kind": self.kind.value, "summary": self.summary}


@dataclass(slots=True)
class PendingDelete(PendingChange):
    record_id: int

    kind: ClassVar[ChangeKind] = ChangeKind.DELETE

    def describe(self) -> dict[str, Any]:
        payload = PendingChange.describe(self)
        payload["recordId"] = self.record_id
        return payload


@dataclass(slots=True)
class PendingReplace(PendingChange):
    candidates: CandidateSet

    kind: ClassVar[ChangeKind] = ChangeKind.IMPORT_REPLACE

    def describe(self) -> dict[str, Any]:
        payload = PendingChange.describe(self)
        payload["incoming"] = len(self.candidates.records)
        payload["rejected"] = len(self.candidates.rejected)
        return payload


@dataclass(slots=True)
class CommitOutcome:
    change: PendingChange
    deleted: bool = False
    result: ReconcileResult | None = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"token": self.change.token, "kind": self.change.kind.value}
        if isinstance(self.change, PendingDelete):
            payload["deleted"] = self.deleted
        if self.result is not None:
            payload.update(self.result.as_dict())
        return payload


@dataclass
class PendingChanges:
    """Holds proposals until the caller confirms or dismisses them.

    Abandoned proposals are pruned on every new proposal: replaces made
    against an older catalog revision go first, then the oldest entries
    beyond `max_open`.
    """

    store: CatalogStore
    max_open: int = MAX_OPEN_CHANGES
    _open: dict[str, PendingChange] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self._open)

    def _prune(self) -> None:
        for token, change in list(self._open.items()):
            if isinstance(change, PendingReplace) and change.revision != self.store.revision:
                del self._open[token]
        while len(self._open) >= self.max_open:
            oldest = next(iter(self._open))
            logger.debug("Dropping abandoned proposal %s", oldest)
            del self._open[oldest]

    def _register(self, change: PendingChange) -> PendingChange:
        self._prune()
        self._open[change.token] = change
        logger.debug("Proposed %s (%s)", change.kind.value, change.token)
        return change

    def propose_delete(self, record_id: int) -> PendingChange:
        try:
            summary = f"Delete this response? ({self.store.find_by_id(record_id).title})"
        except RecordNotFound:
            summary = f"Response {record_id} no longer exists; nothing will be deleted."
        return self._register(
            PendingDelete(
                token=uuid.uuid4().hex,
                summary=summary,
                revision=self.store.revision,
                record_id=record_id,
            )
        )

    def propose_replace(self, candidates: CandidateSet) -> PendingChange:
        return self._register(
            PendingReplace(
                token=uuid.uuid4().hex,
                summary=(
                    f"Replace all {len(self.store)} responses with "
                    f"{len(candidates.records)} from the backup?"
                ),
                revision=self.store.revision,
                candidates=candidates,
            )
        )

    def get(self, token: str) -> PendingChange:
        try:
            return self._open[token]
        except KeyError:
            raise UnknownChange(f"No pending change {token}") from None

    def discard(self, token: str) -> bool:
        return self._open.pop(token, None) is not None

    def commit(self, token: str) -> CommitOutcome:
        change = self._open.pop(token, None)
        if change is None:
            raise UnknownChange(f"No pending change {token}")
        if isinstance(change, PendingDelete):
            return CommitOutcome(change=change, deleted=self.store.delete(change.record_id))
        if not isinstance(change, PendingReplace):
            raise UnknownChange(f"Unsupported pending change {token}")

        # A replace prepared against an older catalog would wipe newer edits.
        if change.revision != self.store.revision:
            raise StaleChange("The catalog changed since this was proposed; please try again.")

        result = reconcile(self.store.list(), change.candidates.records, ImportMode.REPLACE)
        self.store.replace(result.records)
        return CommitOutcome(change=change, result=result)
