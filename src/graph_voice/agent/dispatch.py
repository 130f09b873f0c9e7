"""Tool dispatch between the agent loop and the confirmation engine."""

import logging
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, Field

from graph_voice.actions.engine import ConfirmationEngine
from graph_voice.actions.errors import ActionNotFoundError, FieldNotEditableError
from graph_voice.actions.kinds import ActionKind
from graph_voice.actions.models import ContactLookup, DisplayPreview, ExecutionPayload
from graph_voice.agent.tools import (
    GATED_TOOLS,
    ToolArgumentError,
    UnknownToolError,
    as_name_list,
    check_required,
)
from graph_voice.remote.base import RemoteActionClient, RemoteActionError

logger = logging.getLogger(__name__)

Choice = Literal["confirm", "edit", "cancel"]

NOT_FOUND_MESSAGE = "That request has expired or was already handled."


class ChoiceResult(BaseModel):
    """Outcome of a user's confirm, edit or cancel choice."""

    success: bool = Field(description="Whether the choice was carried out")
    status: str = Field(description="confirmed/edited/cancelled/not_found/rejected/failed")
    message: str = Field(description="Text to show or speak to the user")
    preview: DisplayPreview | None = Field(
        default=None, description="Updated preview after an edit"
    )
    result: dict[str, Any] | None = Field(
        default=None, description="Remote client result after a confirm"
    )


def _success_message(payload: ExecutionPayload) -> str:
    data = payload.data
    match payload.kind:
        case ActionKind.SEND_EMAIL:
            return f"Email sent successfully to {data.get('recipient_name')}"
        case ActionKind.SEND_CHAT_MESSAGE:
            return f"Chat message sent to {data.get('recipient_name')}"
        case ActionKind.DELETE_EMAIL:
            return "Email deleted successfully"
        case ActionKind.DELETE_CHAT_MESSAGE:
            return "Chat message deleted successfully"
        case ActionKind.CREATE_CALENDAR_EVENT:
            return f"Meeting created: {data.get('subject')}"
    return "Action completed"


class ToolDispatcher:
    """Routes gated tool calls into previews and executes confirmed actions."""

    def __init__(
        self,
        engine: ConfirmationEngine,
        client: RemoteActionClient,
        *,
        confirmation_enabled: bool = True,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            engine: Confirmation engine holding pending actions.
            client: Client that performs confirmed actions.
            confirmation_enabled: If False, gated tools execute immediately.
        """
        self.engine = engine
        self.client = client
        self.confirmation_enabled = confirmation_enabled

    async def _lookup_recipient(self, name: str) -> ContactLookup | None:
        """Resolve a recipient once so execution can reuse the result."""
        try:
            contact = await self.client.search_contact(name)
        except RemoteActionError as e:
            logger.warning("Contact lookup failed for %r: %s", name, e)
            return None
        if contact is None:
            return None
        return contact.model_copy(update={"query": name})

    async def handle_tool_call(
        self,
        name: str,
        arguments: Mapping[str, Any],
        session_id: str | None = None,
    ) -> dict[str, Any]:
        """
        Handle a gated tool call from the agent.

        Args:
            name: Tool name chosen by the LLM.
            arguments: Tool arguments.
            session_id: Conversation session making the call.

        Returns:
            {"type": "action_preview", "preview": {...}} when the action needs
            confirmation, or {"type": "action_result", ...} when confirmation
            is disabled.

        Raises:
            UnknownToolError: If the tool is not gated.
            ToolArgumentError: If required arguments are missing.
        """
        tool = GATED_TOOLS.get(name)
        if tool is None:
            raise UnknownToolError(name)

        data = tool.normalize(name, arguments)

        lookup = None
        if tool.recipient_field and data.get(tool.recipient_field):
            lookup = await self._lookup_recipient(data[tool.recipient_field])

        if not self.confirmation_enabled:
            payload = ExecutionPayload(
                action_id="unconfirmed",
                kind=tool.kind,
                data=data,
                cached_lookup=lookup,
            )
            result = await self.execute(payload)
            return {
                "type": "action_result",
                "message": _success_message(payload),
                "result": result,
            }

        preview = self.engine.create_preview(
            tool.kind, data, cached_lookup=lookup, session_id=session_id
        )
        return preview.to_display()

    async def execute(self, payload: ExecutionPayload) -> dict[str, Any]:
        """
        Run a confirmed action against the remote client.

        The cached recipient is only passed along if it was resolved for the
        recipient name being used, so an edited recipient gets a fresh lookup.

        Raises:
            ToolArgumentError: If a field the client needs is missing or empty.
            RemoteActionError: If the client fails.
        """
        data = payload.data
        check_required(payload.kind, data)
        lookup = payload.cached_lookup
        if lookup is not None and not lookup.matches(data.get("recipient_name")):
            lookup = None

        match payload.kind:
            case ActionKind.SEND_EMAIL:
                return await self.client.send_email(
                    data["recipient_name"],
                    data["subject"],
                    data["body"],
                    as_name_list(data.get("cc_recipients")),
                    cached_lookup=lookup,
                )

            case ActionKind.SEND_CHAT_MESSAGE:
                return await self.client.send_chat_message(
                    data["recipient_name"],
                    data["message"],
                    cached_lookup=lookup,
                )

            case ActionKind.DELETE_EMAIL:
                return await self.client.delete_email(data["message_id"])

            case ActionKind.DELETE_CHAT_MESSAGE:
                return await self.client.delete_chat_message(
                    data["chat_id"], data["message_id"]
                )

            case ActionKind.CREATE_CALENDAR_EVENT:
                return await self.client.create_calendar_event(
                    data["subject"],
                    data["start_time"],
                    data["end_time"],
                    location=data.get("location") or "",
                    attendee_names=as_name_list(data.get("attendee_names")),
                    is_online_meeting=bool(data.get("is_online_meeting", False)),
                )

        raise RemoteActionError(f"No executor for {payload.kind.value}")

    async def resolve(
        self,
        session_id: str | None,
        action_id: str,
        choice: Choice,
        edits: Mapping[str, Any] | None = None,
    ) -> ChoiceResult:
        """
        Apply the user's choice for a pending action.

        Args:
            session_id: Session the choice comes from.
            action_id: Pending action ID from the preview.
            choice: "confirm", "edit" or "cancel".
            edits: Field changes for an edit.

        Returns:
            ChoiceResult describing what happened in user-facing terms.

        Raises:
            ValueError: If choice is not one of the three verbs.
        """
        match choice:
            case "edit":
                try:
                    preview = self.engine.edit(action_id, edits or {}, session_id=session_id)
                except ActionNotFoundError:
                    return ChoiceResult(success=False, status="not_found", message=NOT_FOUND_MESSAGE)
                except FieldNotEditableError as e:
                    return ChoiceResult(
                        success=False,
                        status="rejected",
                        message=f'The field "{e.field}" can\'t be changed for this action.',
                    )
                return ChoiceResult(
                    success=True,
                    status="edited",
                    message="Action edited successfully",
                    preview=preview,
                )

            case "confirm":
                try:
                    payload = self.engine.confirm(action_id, session_id=session_id)
                except ActionNotFoundError:
                    return ChoiceResult(success=False, status="not_found", message=NOT_FOUND_MESSAGE)

                try:
                    result = await self.execute(payload)
                except (RemoteActionError, ToolArgumentError) as e:
                    logger.error("Failed to execute %s (%s): %s", action_id, payload.kind.value, e)
                    return ChoiceResult(
                        success=False,
                        status="failed",
                        message=f"Failed to execute action: {e}",
                    )

                return ChoiceResult(
                    success=True,
                    status="confirmed",
                    message=_success_message(payload),
                    result=result,
                )

            case "cancel":
                try:
                    self.engine.cancel(action_id, session_id=session_id)
                except ActionNotFoundError:
                    return ChoiceResult(success=False, status="not_found", message=NOT_FOUND_MESSAGE)
                return ChoiceResult(success=True, status="cancelled", message="Action cancelled")

        raise ValueError('Invalid choice. Must be "confirm", "edit", or "cancel"')
