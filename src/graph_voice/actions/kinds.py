"""Confirmation-gated action kinds and their field configuration."""

from collections.abc import Iterator, Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from graph_voice.actions.errors import UnknownActionKindError


class ActionKind(str, Enum):
    """Operations that must be confirmed by the user before they run."""

    SEND_EMAIL = "send_email"
    SEND_CHAT_MESSAGE = "send_chat_message"
    DELETE_EMAIL = "delete_email"
    DELETE_CHAT_MESSAGE = "delete_chat_message"
    CREATE_CALENDAR_EVENT = "create_calendar_event"


class ActionKindSpec(BaseModel):
    """Display and edit configuration for one action kind."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    title: str = Field(description="Header shown above the preview")
    editable_fields: tuple[str, ...] = Field(
        default=(), description="Fields the user may change before confirming"
    )
    display_fields: tuple[str, ...] = Field(
        description="Fields shown in the preview, in display order"
    )

    @model_validator(mode="after")
    def validate_fields(self) -> "ActionKindSpec":
        """Editable fields must be displayed, and neither list may repeat."""
        for name, fields in (
            ("editable_fields", self.editable_fields),
            ("display_fields", self.display_fields),
        ):
            if len(set(fields)) != len(fields):
                raise ValueError(f"{name} contains duplicate entries")

        hidden = [f for f in self.editable_fields if f not in self.display_fields]
        if hidden:
            raise ValueError(
                f"Editable fields must also be display fields: {', '.join(hidden)}"
            )
        return self


DEFAULT_KINDS: dict[ActionKind, ActionKindSpec] = {
    ActionKind.SEND_EMAIL: ActionKindSpec(
        title="Email Preview",
        editable_fields=("recipient_name", "subject", "body", "cc_recipients"),
        display_fields=("recipient_name", "subject", "body", "cc_recipients"),
    ),
    ActionKind.SEND_CHAT_MESSAGE: ActionKindSpec(
        title="Chat Message Preview",
        editable_fields=("recipient_name", "message"),
        display_fields=("recipient_name", "message"),
    ),
    ActionKind.DELETE_EMAIL: ActionKindSpec(
        title="Delete Email Preview",
        display_fields=("subject", "recipient_name", "sent_at"),
    ),
    ActionKind.DELETE_CHAT_MESSAGE: ActionKindSpec(
        title="Delete Chat Message Preview",
        display_fields=("recipient_name", "message_preview", "sent_at"),
    ),
    ActionKind.CREATE_CALENDAR_EVENT: ActionKindSpec(
        title="Meeting Preview",
        editable_fields=(
            "subject",
            "attendee_names",
            "start_time",
            "end_time",
            "location",
        ),
        display_fields=(
            "subject",
            "attendee_names",
            "start_time",
            "end_time",
            "location",
            "is_online_meeting",
        ),
    ),
}


def resolve_kind(kind: "str | ActionKind") -> ActionKind:
    """Coerce a kind name to ActionKind, raising UnknownActionKindError."""
    if isinstance(kind, ActionKind):
        return kind
    try:
        return ActionKind(kind)
    except ValueError:
        raise UnknownActionKindError(str(kind)) from None


class ActionKindRegistry:
    """Lookup table from ActionKind to its spec, fixed at construction."""

    def __init__(
        self,
        overrides: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> None:
        """
        Build the registry from the defaults plus optional overrides.

        Args:
            overrides: Per-kind replacement values for title and field lists,
                typically loaded from action_kinds.yaml. Keys must name
                existing kinds.
        """
        specs = dict(DEFAULT_KINDS)
        for name, override in (overrides or {}).items():
            kind = resolve_kind(name)
            merged = specs[kind].model_dump() | dict(override)
            specs[kind] = ActionKindSpec.model_validate(merged)
        self._specs = specs

    def resolve(self, kind: "str | ActionKind") -> ActionKind:
        """Resolve a kind name, rejecting anything unregistered."""
        resolved = resolve_kind(kind)
        if resolved not in self._specs:
            raise UnknownActionKindError(resolved.value)
        return resolved

    def spec(self, kind: "str | ActionKind") -> ActionKindSpec:
        """Get the spec for a kind."""
        return self._specs[self.resolve(kind)]

    def __iter__(self) -> Iterator[tuple[ActionKind, ActionKindSpec]]:
        return iter(self._specs.items())

    def __contains__(self, kind: object) -> bool:
        if not isinstance(kind, str):
            return False
        try:
            return resolve_kind(kind) in self._specs
        except UnknownActionKindError:
            return False
