"""Agent tools that must go through the confirmation workflow."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from graph_voice.actions.kinds import ActionKind, resolve_kind

# Fields holding lists of people; callers often pass a single name as a string
NAME_LIST_FIELDS = ("cc_recipients", "attendee_names")


def as_name_list(value: Any) -> list[str]:
    """
    Coerce a name-list value to a list of names.

    Strings are split on commas, so "Bob" becomes ["Bob"] and
    "Bob, Ann" becomes ["Bob", "Ann"]. None and empty values give [].
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [name.strip() for name in value.split(",") if name.strip()]
    return [str(name) for name in value]


class UnknownToolError(Exception):
    """Raised when the agent calls a tool that is not confirmation-gated."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown gated tool: {name}")
        self.name = name


class ToolArgumentError(ValueError):
    """Raised when a gated tool call is missing required arguments."""

    def __init__(self, tool: str, missing: list[str]) -> None:
        super().__init__(f"{tool} is missing required arguments: {', '.join(missing)}")
        self.tool = tool
        self.missing = missing


@dataclass(frozen=True)
class GatedTool:
    """How a tool call maps onto a pending action."""

    kind: ActionKind
    required: tuple[str, ...]
    aliases: dict[str, str] = field(default_factory=dict)
    recipient_field: str | None = None

    def normalize(self, name: str, arguments: Mapping[str, Any]) -> dict[str, Any]:
        """
        Rename LLM argument names to action field names and check requirements.

        Args:
            name: Tool name, for error messages.
            arguments: Raw arguments from the tool call.

        Returns:
            Field data for the pending action.

        Raises:
            ToolArgumentError: If a required field is missing or empty.
        """
        data = {self.aliases.get(key, key): value for key, value in arguments.items()}
        for field_name in NAME_LIST_FIELDS:
            if field_name in data:
                data[field_name] = as_name_list(data[field_name])
        missing = missing_fields(self.required, data)
        if missing:
            raise ToolArgumentError(name, missing)
        return data


def missing_fields(required: tuple[str, ...], data: Mapping[str, Any]) -> list[str]:
    """List required fields that are absent or empty in data."""
    return [f for f in required if data.get(f) in (None, "")]


_SEND_EMAIL = GatedTool(
    kind=ActionKind.SEND_EMAIL,
    required=("recipient_name", "subject", "body"),
    aliases={"recipientName": "recipient_name", "ccRecipients": "cc_recipients"},
    recipient_field="recipient_name",
)

_SEND_CHAT_MESSAGE = GatedTool(
    kind=ActionKind.SEND_CHAT_MESSAGE,
    required=("recipient_name", "message"),
    aliases={"recipientName": "recipient_name"},
    recipient_field="recipient_name",
)

_DELETE_EMAIL = GatedTool(
    kind=ActionKind.DELETE_EMAIL,
    required=("message_id",),
    aliases={"messageId": "message_id", "recipientName": "recipient_name"},
)

_DELETE_CHAT_MESSAGE = GatedTool(
    kind=ActionKind.DELETE_CHAT_MESSAGE,
    required=("chat_id", "message_id"),
    aliases={
        "chatId": "chat_id",
        "messageId": "message_id",
        "recipientName": "recipient_name",
        "message_content": "message_preview",
    },
)

_CREATE_CALENDAR_EVENT = GatedTool(
    kind=ActionKind.CREATE_CALENDAR_EVENT,
    required=("subject", "start_time", "end_time"),
    aliases={
        "start": "start_time",
        "end": "end_time",
        "startTime": "start_time",
        "endTime": "end_time",
        "attendeeNames": "attendee_names",
        "isTeamsMeeting": "is_online_meeting",
    },
)

# Tool names as exposed to the LLM, including the legacy Teams names
GATED_TOOLS: dict[str, GatedTool] = {
    "send_email": _SEND_EMAIL,
    "send_chat_message": _SEND_CHAT_MESSAGE,
    "send_teams_message": _SEND_CHAT_MESSAGE,
    "delete_email": _DELETE_EMAIL,
    "delete_sent_email": _DELETE_EMAIL,
    "delete_chat_message": _DELETE_CHAT_MESSAGE,
    "delete_teams_message": _DELETE_CHAT_MESSAGE,
    "create_calendar_event": _CREATE_CALENDAR_EVENT,
}


def is_gated(name: str) -> bool:
    """Check if a tool call must be confirmed before it runs."""
    return name in GATED_TOOLS


def check_required(kind: "str | ActionKind", data: Mapping[str, Any]) -> None:
    """
    Check that data has every field needed to execute an action of kind.

    Raises:
        UnknownActionKindError: If kind is not an action kind.
        ToolArgumentError: If required fields are missing or empty.
    """
    kind = resolve_kind(kind)
    required = next(tool.required for tool in GATED_TOOLS.values() if tool.kind == kind)
    missing = missing_fields(required, data)
    if missing:
        raise ToolArgumentError(kind.value, missing)
