"""Tests for tool dispatch and choice resolution."""

from typing import Any

import pytest

from graph_voice.actions.models import ContactLookup
from graph_voice.agent.dispatch import NOT_FOUND_MESSAGE, ToolDispatcher
from graph_voice.agent.tools import ToolArgumentError, UnknownToolError
from graph_voice.remote.base import RemoteActionError
from graph_voice.remote.dry_run import DryRunActionClient

JANE = ContactLookup(display_name="Jane Doe", email="jane@example.com", user_id="u-1")


class FailingClient(DryRunActionClient):
    """Dry-run client whose sends and lookups fail."""

    async def search_contact(self, name: str) -> ContactLookup | None:
        raise RemoteActionError("directory unavailable", operation="search_contact")

    async def send_email(self, *args: Any, **kwargs: Any) -> dict[str, Any]:
        raise RemoteActionError("mailbox full", operation="send_email")


@pytest.fixture
def client() -> DryRunActionClient:
    """Create a dry-run client that knows Jane."""
    return DryRunActionClient({"Jane Doe": JANE})


@pytest.fixture
def dispatcher(engine, client) -> ToolDispatcher:
    """Create a dispatcher over the in-memory engine."""
    return ToolDispatcher(engine, client)


EMAIL_ARGS = {"recipientName": "Jane Doe", "subject": "Hi", "body": "Test"}


class TestHandleToolCall:
    """Tests for turning tool calls into previews."""

    @pytest.mark.asyncio
    async def test_returns_preview(self, dispatcher, client) -> None:
        """A gated call returns a preview and executes nothing."""
        response = await dispatcher.handle_tool_call("send_email", EMAIL_ARGS)

        assert response["type"] == "action_preview"
        assert response["preview"]["kind"] == "send_email"
        assert response["preview"]["details"]["to"] == "Jane Doe"
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_recipient_cached(self, dispatcher, store) -> None:
        """The recipient is resolved once and stored with the action."""
        response = await dispatcher.handle_tool_call("send_email", EMAIL_ARGS)

        action = store.get(response["preview"]["id"])
        assert action.cached_lookup.email == "jane@example.com"
        assert action.cached_lookup.query == "Jane Doe"

    @pytest.mark.asyncio
    async def test_lookup_failure_still_previews(self, engine, store) -> None:
        """A failed lookup leaves the action without a cached contact."""
        dispatcher = ToolDispatcher(engine, FailingClient())

        response = await dispatcher.handle_tool_call("send_email", EMAIL_ARGS)

        assert store.get(response["preview"]["id"]).cached_lookup is None

    @pytest.mark.asyncio
    async def test_session_recorded(self, dispatcher, store) -> None:
        """The calling session owns the new action."""
        response = await dispatcher.handle_tool_call(
            "send_teams_message",
            {"recipient_name": "Jane Doe", "message": "Hello"},
            session_id="alice",
        )
        assert store.get(response["preview"]["id"]).session_id == "alice"

    @pytest.mark.asyncio
    async def test_unknown_tool(self, dispatcher) -> None:
        """Non-gated tools are rejected."""
        with pytest.raises(UnknownToolError):
            await dispatcher.handle_tool_call("search_emails", {"query": "x"})

    @pytest.mark.asyncio
    async def test_missing_arguments(self, dispatcher, store) -> None:
        """Incomplete calls raise before anything is stored."""
        with pytest.raises(ToolArgumentError):
            await dispatcher.handle_tool_call("send_email", {"recipient_name": "Jane"})
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_confirmation_disabled(self, engine, client, store) -> None:
        """With confirmation off, gated tools run immediately."""
        dispatcher = ToolDispatcher(engine, client, confirmation_enabled=False)

        response = await dispatcher.handle_tool_call("send_email", EMAIL_ARGS)

        assert response["type"] == "action_result"
        assert response["message"] == "Email sent successfully to Jane Doe"
        assert client.calls[0][0] == "send_email"
        assert len(store) == 0


class TestResolve:
    """Tests for applying user choices."""

    @pytest.mark.asyncio
    async def test_confirm_executes(self, dispatcher, client) -> None:
        """Confirming runs the action with the cached recipient."""
        response = await dispatcher.handle_tool_call("send_email", EMAIL_ARGS)
        action_id = response["preview"]["id"]

        result = await dispatcher.resolve(None, action_id, "confirm")

        assert result.success
        assert result.status == "confirmed"
        assert result.message == "Email sent successfully to Jane Doe"
        operation, arguments = client.calls[0]
        assert operation == "send_email"
        assert arguments["subject"] == "Hi"
        assert arguments["cached_lookup"].email == "jane@example.com"

    @pytest.mark.asyncio
    async def test_edit_then_confirm(self, dispatcher, client) -> None:
        """Edited values are what gets sent."""
        response = await dispatcher.handle_tool_call("send_email", EMAIL_ARGS)
        action_id = response["preview"]["id"]

        edited = await dispatcher.resolve(None, action_id, "edit", {"subject": "Hello"})
        confirmed = await dispatcher.resolve(None, action_id, "confirm")

        assert edited.status == "edited"
        assert edited.preview.fields["subject"] == "Hello"
        assert confirmed.success
        assert client.calls[0][1]["subject"] == "Hello"

    @pytest.mark.asyncio
    async def test_edited_recipient_drops_lookup(self, dispatcher, client) -> None:
        """A cached contact for the old recipient isn't used after an edit."""
        response = await dispatcher.handle_tool_call("send_email", EMAIL_ARGS)
        action_id = response["preview"]["id"]

        await dispatcher.resolve(None, action_id, "edit", {"recipient_name": "Bob Smith"})
        await dispatcher.resolve(None, action_id, "confirm")

        arguments = client.calls[0][1]
        assert arguments["recipient_name"] == "Bob Smith"
        assert arguments["cached_lookup"] is None

    @pytest.mark.asyncio
    async def test_rejected_edit(self, dispatcher) -> None:
        """Forbidden fields are reported without changing the action."""
        response = await dispatcher.handle_tool_call("send_email", EMAIL_ARGS)
        action_id = response["preview"]["id"]

        result = await dispatcher.resolve(
            None, action_id, "edit", {"recipient_email": "x@evil.com"}
        )

        assert not result.success
        assert result.status == "rejected"
        assert result.message == 'The field "recipient_email" can\'t be changed for this action.'

    @pytest.mark.asyncio
    async def test_cancel(self, dispatcher, client) -> None:
        """Cancelling executes nothing."""
        response = await dispatcher.handle_tool_call("send_email", EMAIL_ARGS)

        result = await dispatcher.resolve(None, response["preview"]["id"], "cancel")

        assert result.status == "cancelled"
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_second_confirm_not_found(self, dispatcher, client) -> None:
        """A repeated confirm gets the not-found message and sends nothing more."""
        response = await dispatcher.handle_tool_call("send_email", EMAIL_ARGS)
        action_id = response["preview"]["id"]

        await dispatcher.resolve(None, action_id, "confirm")
        again = await dispatcher.resolve(None, action_id, "confirm")

        assert not again.success
        assert again.status == "not_found"
        assert again.message == NOT_FOUND_MESSAGE
        assert len(client.calls) == 1

    @pytest.mark.asyncio
    async def test_other_session_not_found(self, dispatcher, client) -> None:
        """Another session can't confirm someone else's action."""
        response = await dispatcher.handle_tool_call(
            "send_email", EMAIL_ARGS, session_id="alice"
        )

        result = await dispatcher.resolve("bob", response["preview"]["id"], "confirm")

        assert result.status == "not_found"
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_execution_failure(self, engine, store) -> None:
        """Remote failures are reported and the action stays consumed."""
        dispatcher = ToolDispatcher(engine, FailingClient())
        response = await dispatcher.handle_tool_call("send_email", EMAIL_ARGS)
        action_id = response["preview"]["id"]

        result = await dispatcher.resolve(None, action_id, "confirm")

        assert not result.success
        assert result.status == "failed"
        assert "mailbox full" in result.message
        assert store.get(action_id) is None

    @pytest.mark.asyncio
    async def test_meeting_execution(self, dispatcher, client) -> None:
        """Meetings execute with attendees and the online flag."""
        response = await dispatcher.handle_tool_call(
            "create_calendar_event",
            {
                "subject": "Planning",
                "start": "2025-01-11T10:00:00",
                "end": "2025-01-11T11:00:00",
                "attendeeNames": ["Jane Doe"],
                "isTeamsMeeting": True,
            },
        )

        result = await dispatcher.resolve(None, response["preview"]["id"], "confirm")

        assert result.message == "Meeting created: Planning"
        arguments = client.calls[0][1]
        assert arguments["attendee_names"] == ["Jane Doe"]
        assert arguments["is_online_meeting"] is True
        assert arguments["location"] == ""

    @pytest.mark.asyncio
    async def test_delete_chat_execution(self, dispatcher, client) -> None:
        """Chat deletions use the stored internal IDs."""
        response = await dispatcher.handle_tool_call(
            "delete_teams_message",
            {"chatId": "19:abc", "messageId": "1700000000", "recipientName": "Jane Doe"},
        )
        assert "chat_id" not in response["preview"]["fields"]

        result = await dispatcher.resolve(None, response["preview"]["id"], "confirm")

        assert result.message == "Chat message deleted successfully"
        assert client.calls[0] == (
            "delete_chat_message",
            {"chat_id": "19:abc", "message_id": "1700000000"},
        )

    @pytest.mark.asyncio
    async def test_invalid_choice(self, dispatcher) -> None:
        """Unknown verbs raise ValueError."""
        with pytest.raises(ValueError, match="Invalid choice"):
            await dispatcher.resolve(None, "action_1_a", "approve")


class TestExecutionInputs:
    """Tests for data that reaches execution in unusual shapes."""

    @pytest.mark.asyncio
    async def test_cc_edited_to_string(self, dispatcher, client) -> None:
        """A cc list edited to a single name is sent as one recipient."""
        response = await dispatcher.handle_tool_call(
            "send_email", {**EMAIL_ARGS, "ccRecipients": ["Ann"]}
        )
        action_id = response["preview"]["id"]

        await dispatcher.resolve(None, action_id, "edit", {"cc_recipients": "Bob"})
        result = await dispatcher.resolve(None, action_id, "confirm")

        assert result.success
        assert client.calls[0][1]["cc_recipients"] == ["Bob"]

    @pytest.mark.asyncio
    async def test_string_attendees(self, engine, client) -> None:
        """Comma-separated attendees are split into names."""
        dispatcher = ToolDispatcher(engine, client)
        preview = engine.create_preview(
            "create_calendar_event",
            {
                "subject": "Planning",
                "start_time": "2025-01-11T10:00:00",
                "end_time": "2025-01-11T11:00:00",
                "attendee_names": "Jane Doe, Bob",
            },
        )

        await dispatcher.resolve(None, preview.id, "confirm")

        assert client.calls[0][1]["attendee_names"] == ["Jane Doe", "Bob"]

    @pytest.mark.asyncio
    async def test_missing_fields_fail_cleanly(self, engine, store, client) -> None:
        """An action lacking required fields fails instead of raising."""
        dispatcher = ToolDispatcher(engine, client)
        preview = engine.create_preview("send_email", {"recipient_name": "Jane"})

        result = await dispatcher.resolve(None, preview.id, "confirm")

        assert not result.success
        assert result.status == "failed"
        assert "subject" in result.message
        assert "body" in result.message
        assert client.calls == []
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_missing_delete_id_fails_cleanly(self, engine, client) -> None:
        """A deletion without its message ID reports failure."""
        dispatcher = ToolDispatcher(engine, client)
        preview = engine.create_preview("delete_email", {"subject": "Report"})

        result = await dispatcher.resolve(None, preview.id, "confirm")

        assert result.status == "failed"
        assert "message_id" in result.message
        assert client.calls == []
