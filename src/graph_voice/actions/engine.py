"""Confirmation engine for gated actions.

Side-effecting operations proposed by the agent (sending mail or chat
messages, deleting them, creating meetings) are parked here as pending
actions. The user then confirms, edits or cancels each one:

    (none)  --create_preview-->  pending
    pending --edit-->            edited
    edited  --edit-->            edited
    pending/edited --confirm-->  confirmed, removed, payload returned
    pending/edited --cancel-->   cancelled, removed
    any     --expire-->          removed

The engine never executes anything. confirm() hands back an ExecutionPayload
and the caller runs it against the remote client.
"""

import copy
import logging
import secrets
import string
from collections.abc import Generator, Mapping
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any

from graph_voice.actions.errors import ActionNotFoundError, FieldNotEditableError
from graph_voice.actions.kinds import ActionKind, ActionKindRegistry
from graph_voice.actions.models import (
    ActionStatus,
    ContactLookup,
    DisplayPreview,
    ExecutionPayload,
    PendingAction,
)
from graph_voice.actions.preview import preview_for
from graph_voice.actions.store import ActionStore, Clock, InMemoryActionStore, as_timedelta

DEFAULT_TTL = timedelta(hours=1)

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_action_id(now: datetime) -> str:
    """Generate an action ID from a millisecond timestamp and a random suffix."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"action_{int(now.timestamp() * 1000)}_{suffix}"


class _ActionExpired(ActionNotFoundError):
    """Raised inside store callbacks when an action outlived the TTL."""


class ConfirmationEngine:
    """State machine for pending actions awaiting user confirmation."""

    def __init__(
        self,
        store: ActionStore | None = None,
        registry: ActionKindRegistry | None = None,
        *,
        ttl: "timedelta | float" = DEFAULT_TTL,
        clock: Clock = datetime.now,
        logger: logging.Logger | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            store: Where pending actions live. Defaults to an in-memory store.
            registry: Action kind configuration. Defaults to the built-in kinds.
            ttl: How long an action stays confirmable after creation.
            clock: Source of the current time.
            logger: Logger for action lifecycle events.
        """
        self.store = store if store is not None else InMemoryActionStore(clock)
        self.registry = registry or ActionKindRegistry()
        self.ttl = as_timedelta(ttl)
        self._clock = clock
        self.logger = logger or logging.getLogger(__name__)

    def _check_available(
        self,
        action: PendingAction,
        session_id: str | None,
        now: datetime,
    ) -> None:
        """Raise ActionNotFoundError unless the caller may act on the action."""
        if not action.owned_by(session_id):
            self.logger.warning(
                "Action %s requested by a session that does not own it", action.id
            )
            raise ActionNotFoundError(action.id)
        if not action.status.is_open:
            raise ActionNotFoundError(action.id)
        if action.age(now) > self.ttl:
            raise _ActionExpired(action.id)

    @contextmanager
    def _expiring(self, action_id: str) -> Generator[None, None, None]:
        """Drop actions found past their TTL and report them as not found."""
        try:
            yield
        except _ActionExpired:
            self.store.delete(action_id)
            self.logger.info("Action expired: %s", action_id)
            raise ActionNotFoundError(action_id) from None

    def create_preview(
        self,
        kind: "str | ActionKind",
        raw_data: Mapping[str, Any],
        *,
        cached_lookup: ContactLookup | None = None,
        session_id: str | None = None,
    ) -> DisplayPreview:
        """
        Park a gated action and return its preview.

        Args:
            kind: The action kind. Unregistered kinds raise UnknownActionKindError.
            raw_data: Field values from the tool call. Stored as-is; only the
                preview is filtered.
            cached_lookup: Recipient already resolved by the caller.
            session_id: Owning session. When set, later calls must pass the
                same session ID.

        Returns:
            DisplayPreview for the new action, including its ID.
        """
        kind = self.registry.resolve(kind)
        now = self._clock()

        action = PendingAction(
            id=generate_action_id(now),
            kind=kind,
            created_at=now,
            original_data=copy.deepcopy(dict(raw_data)),
            cached_lookup=cached_lookup,
            session_id=session_id,
        )
        self.store.put(action)

        self.logger.info("Action preview created: %s (%s)", action.id, kind.value)
        return preview_for(action, self.registry.spec(kind))

    def get_preview(
        self,
        action_id: str,
        *,
        session_id: str | None = None,
    ) -> DisplayPreview:
        """Get the current preview of an open action."""
        action = self.store.get(action_id)
        if action is None:
            raise ActionNotFoundError(action_id)

        with self._expiring(action_id):
            self._check_available(action, session_id, self._clock())

        return preview_for(action, self.registry.spec(action.kind))

    def edit(
        self,
        action_id: str,
        field_edits: Mapping[str, Any],
        *,
        session_id: str | None = None,
    ) -> DisplayPreview:
        """
        Apply user edits to an open action.

        Either every edit is applied or none is: if any field is not editable
        for the action's kind, FieldNotEditableError names the first such
        field and the stored action is unchanged.

        Args:
            action_id: ID of the action to edit.
            field_edits: New values keyed by field name.
            session_id: Caller session.

        Returns:
            DisplayPreview reflecting the edited data.
        """
        now = self._clock()
        edits = copy.deepcopy(dict(field_edits))

        def apply(action: PendingAction) -> None:
            self._check_available(action, session_id, now)
            spec = self.registry.spec(action.kind)
            for field in edits:
                if field not in spec.editable_fields:
                    raise FieldNotEditableError(field, action.kind.value)

            if action.edited_data is None:
                action.edited_data = copy.deepcopy(action.original_data)
            action.edited_data.update(edits)
            action.status = ActionStatus.EDITED
            action.edited_at = now

        try:
            with self._expiring(action_id):
                updated = self.store.update(action_id, apply)
        except FieldNotEditableError as e:
            self.logger.info("Edit rejected for %s: field %r", action_id, e.field)
            raise

        if updated is None:
            raise ActionNotFoundError(action_id)

        self.logger.info("Action edited: %s (%s)", action_id, ", ".join(edits) or "no fields")
        return preview_for(updated, self.registry.spec(updated.kind))

    def _take(self, action_id: str, session_id: str | None) -> tuple[PendingAction, datetime]:
        """Atomically remove an open action for confirm or cancel."""
        now = self._clock()

        def check(action: PendingAction) -> None:
            self._check_available(action, session_id, now)

        with self._expiring(action_id):
            action = self.store.pop(action_id, check=check)

        if action is None:
            raise ActionNotFoundError(action_id)
        return action, now

    def confirm(
        self,
        action_id: str,
        *,
        session_id: str | None = None,
    ) -> ExecutionPayload:
        """
        Confirm an open action and hand it off for execution.

        The action is removed from the store before this returns, so a
        second confirm, a late edit or a racing sweep all find nothing.

        Returns:
            ExecutionPayload with the effective data (edited if the user made
            changes) and any cached recipient lookup.
        """
        action, now = self._take(action_id, session_id)
        action.status = ActionStatus.CONFIRMED
        action.confirmed_at = now

        self.logger.info("Action confirmed: %s (%s)", action_id, action.kind.value)
        return ExecutionPayload(
            action_id=action.id,
            kind=action.kind,
            data=action.effective_data,
            cached_lookup=action.cached_lookup,
        )

    def cancel(self, action_id: str, *, session_id: str | None = None) -> None:
        """Cancel an open action. Cancelling twice raises ActionNotFoundError."""
        action, _ = self._take(action_id, session_id)
        action.status = ActionStatus.CANCELLED
        self.logger.info("Action cancelled: %s (%s)", action_id, action.kind.value)

    def sweep_expired(self, max_age_seconds: float | None = None) -> int:
        """
        Remove actions older than max_age_seconds (default: the engine TTL).

        Meant to be called periodically by a scheduler such as ExpirySweeper.

        Returns:
            Number of actions removed.
        """
        max_age = self.ttl if max_age_seconds is None else as_timedelta(max_age_seconds)
        removed = self.store.sweep_expired(max_age, now=self._clock())
        if removed:
            self.logger.info("Cleaned up %d expired actions", removed)
        return removed

    def list_pending(self, session_id: str | None = None) -> list[DisplayPreview]:
        """Previews of all open, unexpired actions, oldest first."""
        now = self._clock()
        return [
            preview_for(action, self.registry.spec(action.kind))
            for action in self.store.list_actions(session_id)
            if action.status.is_open and action.age(now) <= self.ttl
        ]
