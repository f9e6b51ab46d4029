"""Record model and the built-in starter catalog."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, StrictInt


class QuickAssistError(Exception):
    """Base class for catalog errors surfaced to callers."""


class ValidationFailed(QuickAssistError, ValueError):
    """Raised when a title or text is empty on create/update."""


class RecordNotFound(QuickAssistError, LookupError):
    """Raised when no record carries the requested id."""

    def __init__(self, record_id: int) -> None:
        super().__init__(f"No response with id {record_id}")
        self.record_id = record_id


class Record(BaseModel):
    """One canned response.

    Only the shape is enforced here so stored snapshots load as written;
    non-empty fields are checked by `require_fields` on the form and import paths.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: StrictInt
    title: str
    text: str

    def as_json(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "text": self.text}


SNAPSHOT_KEY = "quickAssistData"

DEFAULT_RECORDS: tuple[Record, ...] = (
    Record(
        id=1701,
        title="Password Reset",
        text=(
            "I have gone ahead and reset your password to the default. Please try logging in with "
            "'ChangeMe123!' (without quotes). You will be prompted to create a new, secure password "
            "immediately upon signing in."
        ),
    ),
    Record(
        id=1702,
        title="Projector Fix",
        text=(
            "It sounds like the display settings might be desynchronized. Please press the 'Windows' "
            "key + 'P' at the same time. Select 'Duplicate' from the menu on the right."
        ),
    ),
    Record(
        id=1703,
        title="Wifi Refresh",
        text=(
            "Let's try a quick refresh. Please toggle your Wi-Fi 'Off,' count to five, and toggle it "
            "back 'On.' Ensure you are selecting the 'Staff-Secure' network."
        ),
    ),
)


def require_fields(title: str, text: str) -> None:
    """Reject empty form input before any mutation happens."""
    if not title or not text:
        raise ValidationFailed("Please fill in both fields.")
