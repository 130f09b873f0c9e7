"""Data models for pending actions and their previews."""

import copy
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from graph_voice.actions.kinds import ActionKind


class ActionStatus(str, Enum):
    """Lifecycle status of a pending action."""

    PENDING = "pending"
    EDITED = "edited"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    @property
    def is_open(self) -> bool:
        """Check if the action can still be edited, confirmed or cancelled."""
        return self in (ActionStatus.PENDING, ActionStatus.EDITED)


class ContactLookup(BaseModel):
    """A resolved recipient, cached so execution can skip the directory search."""

    display_name: str = Field(description="Name as shown in the directory")
    email: str = Field(description="Resolved email address")
    user_id: str | None = Field(default=None, description="Directory user ID")
    chat_id: str | None = Field(
        default=None, description="One-on-one chat ID, if already known"
    )
    query: str | None = Field(
        default=None, description="Name that was searched to find this contact"
    )

    def matches(self, name: str | None) -> bool:
        """Check if this lookup still answers a search for name."""
        if self.query is None or name is None:
            return self.query is None
        return self.query.casefold() == name.casefold()


class PendingAction(BaseModel):
    """A gated action awaiting the user's confirm, edit or cancel."""

    id: str = Field(description="Opaque action ID")
    kind: ActionKind = Field(description="What the action does")
    created_at: datetime = Field(description="When the preview was created")
    status: ActionStatus = Field(default=ActionStatus.PENDING)
    original_data: dict[str, Any] = Field(
        description="Field values exactly as first proposed"
    )
    edited_data: dict[str, Any] | None = Field(
        default=None, description="Full copy of original_data with user edits applied"
    )
    cached_lookup: ContactLookup | None = Field(
        default=None, description="Recipient resolved while building the preview"
    )
    session_id: str | None = Field(
        default=None, description="Session that created the action"
    )
    edited_at: datetime | None = None
    confirmed_at: datetime | None = None

    @property
    def effective_data(self) -> dict[str, Any]:
        """Data to execute: the edited overlay if present, else the original."""
        data = self.edited_data if self.edited_data is not None else self.original_data
        return copy.deepcopy(data)

    def age(self, now: datetime) -> timedelta:
        """Time elapsed since the action was created."""
        return now - self.created_at

    def owned_by(self, session_id: str | None) -> bool:
        """Check whether a caller session may act on this action."""
        return self.session_id is None or self.session_id == session_id


class DisplayPreview(BaseModel):
    """Display-safe projection of a pending action."""

    id: str
    kind: ActionKind
    title: str
    fields: dict[str, Any] = Field(
        description="Raw values for the kind's display fields only"
    )
    details: dict[str, str] = Field(
        description="Kind-specific display strings, always including 'summary'"
    )
    editable_fields: list[str]
    status: ActionStatus
    created_at: datetime

    @property
    def summary(self) -> str:
        """One-line description of the action."""
        return self.details["summary"]

    def to_display(self) -> dict[str, Any]:
        """Serialize for the client UI."""
        return {"type": "action_preview", "preview": self.model_dump(mode="json")}


class ExecutionPayload(BaseModel):
    """A confirmed action handed back for execution."""

    model_config = ConfigDict(frozen=True)

    action_id: str
    kind: ActionKind
    data: dict[str, Any]
    cached_lookup: ContactLookup | None = None
