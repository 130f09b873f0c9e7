"""Remote action client that records calls instead of performing them."""

import logging
from typing import Any

from graph_voice.actions.models import ContactLookup
from graph_voice.remote.base import RemoteActionClient

logger = logging.getLogger(__name__)


class DryRunActionClient(RemoteActionClient):
    """Client for dry-run mode: nothing leaves the machine."""

    def __init__(self, contacts: dict[str, ContactLookup] | None = None) -> None:
        """
        Initialize the dry-run client.

        Args:
            contacts: Directory entries keyed by lowercase display name, used
                to answer search_contact.
        """
        self.contacts = {name.lower(): c for name, c in (contacts or {}).items()}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def _record(self, operation: str, **arguments: Any) -> dict[str, Any]:
        self.calls.append((operation, arguments))
        logger.info("[dry run] %s", operation)
        return {"success": True, "dry_run": True, "operation": operation}

    async def search_contact(self, name: str) -> ContactLookup | None:
        return self.contacts.get(name.lower())

    async def send_email(
        self,
        recipient_name: str,
        subject: str,
        body: str,
        cc_recipients: list[str],
        cached_lookup: ContactLookup | None = None,
    ) -> dict[str, Any]:
        return self._record(
            "send_email",
            recipient_name=recipient_name,
            subject=subject,
            body=body,
            cc_recipients=cc_recipients,
            cached_lookup=cached_lookup,
        )

    async def send_chat_message(
        self,
        recipient_name: str,
        message: str,
        cached_lookup: ContactLookup | None = None,
    ) -> dict[str, Any]:
        return self._record(
            "send_chat_message",
            recipient_name=recipient_name,
            message=message,
            cached_lookup=cached_lookup,
        )

    async def delete_email(self, message_id: str) -> dict[str, Any]:
        return self._record("delete_email", message_id=message_id)

    async def delete_chat_message(self, chat_id: str, message_id: str) -> dict[str, Any]:
        return self._record("delete_chat_message", chat_id=chat_id, message_id=message_id)

    async def create_calendar_event(
        self,
        subject: str,
        start_time: str,
        end_time: str,
        location: str = "",
        attendee_names: list[str] | None = None,
        is_online_meeting: bool = False,
    ) -> dict[str, Any]:
        return self._record(
            "create_calendar_event",
            subject=subject,
            start_time=start_time,
            end_time=end_time,
            location=location,
            attendee_names=attendee_names or [],
            is_online_meeting=is_online_meeting,
        )
