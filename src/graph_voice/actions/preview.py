"""Preview formatting for pending actions.

Previews are built from an allowlist: only the display fields configured for
an action kind ever reach the user, so tokens, message IDs and raw API
payloads riding along in the tool arguments stay server-side.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from graph_voice.actions.kinds import ActionKind, ActionKindSpec
from graph_voice.actions.models import ActionStatus, DisplayPreview, PendingAction

PLACEHOLDER = "None"


def filter_fields(data: Mapping[str, Any], fields: tuple[str, ...]) -> dict[str, Any]:
    """Keep only the listed fields that are present in data, in list order."""
    return {field: data[field] for field in fields if field in data}


def display_text(value: Any) -> str:
    """Render a field value as a display string."""
    if value is None or value == "":
        return PLACEHOLDER
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value) if value else PLACEHOLDER
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _details(kind: ActionKind, fields: Mapping[str, Any]) -> dict[str, str]:
    """Build the kind-specific detail strings from allowlisted fields."""
    text = {name: display_text(value) for name, value in fields.items()}

    def get(name: str) -> str:
        return text.get(name, PLACEHOLDER)

    match kind:
        case ActionKind.SEND_EMAIL:
            return {
                "to": get("recipient_name"),
                "subject": get("subject"),
                "body": get("body"),
                "cc": get("cc_recipients"),
                "summary": (
                    f'Send email to {get("recipient_name")} '
                    f'with subject: "{get("subject")}"'
                ),
            }

        case ActionKind.SEND_CHAT_MESSAGE:
            return {
                "recipient": get("recipient_name"),
                "message": get("message"),
                "summary": f"Send chat message to {get('recipient_name')}",
            }

        case ActionKind.DELETE_EMAIL:
            return {
                "subject": get("subject"),
                "to": get("recipient_name"),
                "sent_at": get("sent_at"),
                "summary": f'Delete sent email "{get("subject")}"',
            }

        case ActionKind.DELETE_CHAT_MESSAGE:
            return {
                "recipient": get("recipient_name"),
                "message": get("message_preview"),
                "sent_at": get("sent_at"),
                "summary": f"Delete chat message sent to {get('recipient_name')}",
            }

        case ActionKind.CREATE_CALENDAR_EVENT:
            return {
                "subject": get("subject"),
                "attendees": get("attendee_names"),
                "start_time": get("start_time"),
                "end_time": get("end_time"),
                "location": get("location"),
                "online_meeting": display_text(bool(fields.get("is_online_meeting"))),
                "summary": f"Meeting: {get('subject')}",
            }

    return {"summary": kind.value}


def build_preview(
    kind: ActionKind,
    data: Mapping[str, Any],
    *,
    spec: ActionKindSpec,
    action_id: str,
    status: ActionStatus,
    created_at: datetime,
) -> DisplayPreview:
    """
    Build the display-safe preview of an action.

    Args:
        kind: The action kind.
        data: Raw field values (original or edited). Keys outside the kind's
            display fields are dropped.
        spec: Field configuration for the kind.
        action_id: ID of the pending action.
        status: Current lifecycle status.
        created_at: When the action was proposed.

    Returns:
        DisplayPreview whose fields hold only allowlisted keys.
    """
    fields = filter_fields(data, spec.display_fields)
    return DisplayPreview(
        id=action_id,
        kind=kind,
        title=spec.title,
        fields=fields,
        details=_details(kind, fields),
        editable_fields=list(spec.editable_fields),
        status=status,
        created_at=created_at,
    )


def preview_for(action: PendingAction, spec: ActionKindSpec) -> DisplayPreview:
    """Build the preview of a stored action from its effective data."""
    return build_preview(
        action.kind,
        action.effective_data,
        spec=spec,
        action_id=action.id,
        status=action.status,
        created_at=action.created_at,
    )
