"""Tests for preview formatting."""

from datetime import datetime

from graph_voice.actions.kinds import DEFAULT_KINDS, ActionKind
from graph_voice.actions.models import ActionStatus
from graph_voice.actions.preview import PLACEHOLDER, build_preview, display_text, filter_fields

CREATED = datetime(2025, 1, 10, 9, 0, 0)


def _preview(kind: ActionKind, data: dict):
    return build_preview(
        kind,
        data,
        spec=DEFAULT_KINDS[kind],
        action_id="action_1_abc",
        status=ActionStatus.PENDING,
        created_at=CREATED,
    )


class TestDisplayText:
    """Tests for value rendering."""

    def test_missing_values_use_placeholder(self) -> None:
        """None and empty strings render as the placeholder."""
        assert display_text(None) == PLACEHOLDER
        assert display_text("") == PLACEHOLDER

    def test_lists(self) -> None:
        """Lists join with commas; empty lists use the placeholder."""
        assert display_text(["Bob", "Ann"]) == "Bob, Ann"
        assert display_text([]) == PLACEHOLDER

    def test_booleans(self) -> None:
        """Booleans render as Yes/No."""
        assert display_text(True) == "Yes"
        assert display_text(False) == "No"

    def test_datetime(self) -> None:
        """Datetimes render in ISO format."""
        assert display_text(CREATED) == "2025-01-10T09:00:00"


class TestFilterFields:
    """Tests for the field allowlist."""

    def test_drops_unlisted_keys(self) -> None:
        """Only listed keys that are present survive."""
        data = {"subject": "Hi", "token": "secret", "body": "x"}
        assert filter_fields(data, ("subject", "body", "cc_recipients")) == {
            "subject": "Hi",
            "body": "x",
        }


class TestBuildPreview:
    """Tests for kind-specific previews."""

    def test_email_preview(self) -> None:
        """Email previews show recipient, subject, body and cc."""
        preview = _preview(
            ActionKind.SEND_EMAIL,
            {
                "recipient_name": "Jane Doe",
                "subject": "Hi",
                "body": "Test",
                "cc_recipients": ["Bob"],
            },
        )

        assert preview.title == "Email Preview"
        assert preview.details["to"] == "Jane Doe"
        assert preview.details["cc"] == "Bob"
        assert preview.summary == 'Send email to Jane Doe with subject: "Hi"'
        assert preview.editable_fields == [
            "recipient_name",
            "subject",
            "body",
            "cc_recipients",
        ]

    def test_internal_fields_never_shown(self) -> None:
        """Keys outside the display allowlist are dropped from the preview."""
        preview = _preview(
            ActionKind.DELETE_EMAIL,
            {
                "message_id": "AAMkAD-internal",
                "subject": "Weekly report",
                "recipient_name": "Jane Doe",
                "access_token": "eyJ0eXAi",
            },
        )

        assert set(preview.fields) == {"subject", "recipient_name"}
        rendered = str(preview.to_display())
        assert "AAMkAD-internal" not in rendered
        assert "eyJ0eXAi" not in rendered

    def test_missing_fields_use_placeholder(self) -> None:
        """Absent display fields render as the placeholder."""
        preview = _preview(ActionKind.SEND_CHAT_MESSAGE, {"recipient_name": "Jane Doe"})

        assert preview.details["message"] == PLACEHOLDER
        assert "message" not in preview.fields

    def test_chat_preview_summary(self) -> None:
        """Chat previews name the recipient."""
        preview = _preview(
            ActionKind.SEND_CHAT_MESSAGE,
            {"recipient_name": "Jane Doe", "message": "On my way"},
        )
        assert preview.title == "Chat Message Preview"
        assert preview.summary == "Send chat message to Jane Doe"

    def test_delete_chat_preview(self) -> None:
        """Chat deletion previews show the message excerpt and no edits."""
        preview = _preview(
            ActionKind.DELETE_CHAT_MESSAGE,
            {
                "chat_id": "19:abc",
                "message_id": "1700000000",
                "recipient_name": "Jane Doe",
                "message_preview": "See you at 3",
            },
        )

        assert preview.details["message"] == "See you at 3"
        assert preview.details["sent_at"] == PLACEHOLDER
        assert preview.summary == "Delete chat message sent to Jane Doe"
        assert preview.editable_fields == []

    def test_meeting_preview(self) -> None:
        """Meeting previews list attendees and the online flag."""
        preview = _preview(
            ActionKind.CREATE_CALENDAR_EVENT,
            {
                "subject": "Planning",
                "attendee_names": ["Jane Doe", "Bob"],
                "start_time": "2025-01-11T10:00:00",
                "end_time": "2025-01-11T11:00:00",
                "is_online_meeting": True,
            },
        )

        assert preview.title == "Meeting Preview"
        assert preview.details["attendees"] == "Jane Doe, Bob"
        assert preview.details["location"] == PLACEHOLDER
        assert preview.details["online_meeting"] == "Yes"
        assert preview.summary == "Meeting: Planning"

    def test_to_display_shape(self) -> None:
        """Serialized previews are tagged for the client UI."""
        preview = _preview(ActionKind.SEND_CHAT_MESSAGE, {"recipient_name": "Jane"})
        display = preview.to_display()

        assert display["type"] == "action_preview"
        assert display["preview"]["id"] == "action_1_abc"
        assert display["preview"]["kind"] == "send_chat_message"
        assert display["preview"]["status"] == "pending"
