"""Remote action client interface for the collaboration platform."""

from abc import ABC, abstractmethod
from typing import Any

from graph_voice.actions.models import ContactLookup


class RemoteActionError(Exception):
    """Raised when the collaboration platform rejects or fails an operation."""

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class RemoteActionClient(ABC):
    """Abstract client that performs confirmed actions.

    Only the tool dispatch layer talks to a client; the confirmation engine
    just hands back the data to pass in.
    """

    @abstractmethod
    async def search_contact(self, name: str) -> ContactLookup | None:
        """
        Resolve a person's name to a directory entry.

        Args:
            name: Display name as spoken or typed by the user.

        Returns:
            The best match, or None if nobody matched.
        """
        ...

    @abstractmethod
    async def send_email(
        self,
        recipient_name: str,
        subject: str,
        body: str,
        cc_recipients: list[str],
        cached_lookup: ContactLookup | None = None,
    ) -> dict[str, Any]:
        """
        Send an email.

        Args:
            recipient_name: Recipient's display name.
            subject: Subject line.
            body: Plain text body.
            cc_recipients: Names to copy.
            cached_lookup: Previously resolved recipient; skips the directory
                search when it matches recipient_name.

        Returns:
            Result details from the platform.
        """
        ...

    @abstractmethod
    async def send_chat_message(
        self,
        recipient_name: str,
        message: str,
        cached_lookup: ContactLookup | None = None,
    ) -> dict[str, Any]:
        """Send a one-on-one chat message."""
        ...

    @abstractmethod
    async def delete_email(self, message_id: str) -> dict[str, Any]:
        """Delete a sent email by message ID."""
        ...

    @abstractmethod
    async def delete_chat_message(self, chat_id: str, message_id: str) -> dict[str, Any]:
        """Soft-delete a chat message."""
        ...

    @abstractmethod
    async def create_calendar_event(
        self,
        subject: str,
        start_time: str,
        end_time: str,
        location: str = "",
        attendee_names: list[str] | None = None,
        is_online_meeting: bool = False,
    ) -> dict[str, Any]:
        """Create a calendar event, optionally as an online meeting."""
        ...
