"""Storage for pending actions awaiting confirmation."""

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timedelta

from graph_voice.actions.models import PendingAction

Clock = Callable[[], datetime]
Mutator = Callable[[PendingAction], None]
Check = Callable[[PendingAction], None]


def as_timedelta(max_age: "timedelta | float") -> timedelta:
    """Accept a max age as a timedelta or a number of seconds."""
    if isinstance(max_age, timedelta):
        return max_age
    return timedelta(seconds=max_age)


class ActionStore(ABC):
    """Keyed storage for pending actions.

    Implementations must make every single-id operation atomic: no reader may
    observe a half-applied update, and a removal racing with an update must
    leave exactly one of them effective. Stores never start timers; expiry is
    driven from outside through sweep_expired.
    """

    @abstractmethod
    def put(self, action: PendingAction) -> None:
        """Insert a new action. Raises ValueError if the ID already exists."""
        ...

    @abstractmethod
    def get(self, action_id: str) -> PendingAction | None:
        """Get a copy of an action, or None if it is not stored."""
        ...

    @abstractmethod
    def update(self, action_id: str, mutate: Mutator) -> PendingAction | None:
        """
        Atomically modify a stored action.

        Args:
            action_id: ID of the action to modify.
            mutate: Called with a copy of the stored action. The copy replaces
                the stored record only if mutate returns normally; if it
                raises, the exception propagates and nothing changes.

        Returns:
            Copy of the updated action, or None if the ID is not stored.
        """
        ...

    @abstractmethod
    def pop(self, action_id: str, check: Check | None = None) -> PendingAction | None:
        """
        Atomically remove and return an action.

        Args:
            action_id: ID of the action to remove.
            check: Optional guard called with a copy of the action before
                removal. If it raises, the action stays stored.

        Returns:
            The removed action, or None if the ID is not stored.
        """
        ...

    @abstractmethod
    def sweep_expired(
        self,
        max_age: "timedelta | float",
        now: datetime | None = None,
    ) -> int:
        """Remove actions created more than max_age before now. Returns the count."""
        ...

    @abstractmethod
    def list_actions(self, session_id: str | None = None) -> list[PendingAction]:
        """List stored actions oldest first, optionally for one session."""
        ...

    @abstractmethod
    def __len__(self) -> int:
        ...

    def delete(self, action_id: str) -> None:
        """Remove an action. Removing an unknown ID is a no-op."""
        self.pop(action_id)


class _Slot:
    """One stored action and the lock that serializes access to it."""

    __slots__ = ("lock", "action")

    def __init__(self, action: PendingAction) -> None:
        self.lock = threading.Lock()
        self.action: PendingAction | None = action


class InMemoryActionStore(ActionStore):
    """Process-local store with one lock per action.

    There is no store-wide lock: operations on different IDs never wait on
    each other. The slot table itself is only touched with single dict
    operations. A removed slot has its action cleared under the slot lock,
    so an operation that looked the slot up just before removal finds it
    empty.
    """

    def __init__(self, clock: Clock = datetime.now) -> None:
        self._slots: dict[str, _Slot] = {}
        self._clock = clock

    def _live_slot(self, action_id: str) -> _Slot | None:
        return self._slots.get(action_id)

    def _remove(self, action_id: str, slot: _Slot) -> None:
        """Mark a slot dead and unlink it. Caller holds slot.lock."""
        slot.action = None
        self._slots.pop(action_id, None)

    def put(self, action: PendingAction) -> None:
        slot = _Slot(action.model_copy(deep=True))
        if self._slots.setdefault(action.id, slot) is not slot:
            raise ValueError(f"Duplicate action ID: {action.id}")

    def get(self, action_id: str) -> PendingAction | None:
        slot = self._live_slot(action_id)
        if slot is None:
            return None
        with slot.lock:
            if slot.action is None:
                return None
            return slot.action.model_copy(deep=True)

    def update(self, action_id: str, mutate: Mutator) -> PendingAction | None:
        slot = self._live_slot(action_id)
        if slot is None:
            return None
        with slot.lock:
            if slot.action is None:
                return None
            draft = slot.action.model_copy(deep=True)
            mutate(draft)
            slot.action = draft
            return draft.model_copy(deep=True)

    def pop(self, action_id: str, check: Check | None = None) -> PendingAction | None:
        slot = self._live_slot(action_id)
        if slot is None:
            return None
        with slot.lock:
            action = slot.action
            if action is None:
                return None
            if check is not None:
                check(action.model_copy(deep=True))
            self._remove(action_id, slot)
            return action

    def sweep_expired(
        self,
        max_age: "timedelta | float",
        now: datetime | None = None,
    ) -> int:
        max_age = as_timedelta(max_age)
        now = now or self._clock()
        removed = 0

        for action_id, slot in self._slots.copy().items():
            with slot.lock:
                if slot.action is None:
                    continue
                if slot.action.age(now) > max_age:
                    self._remove(action_id, slot)
                    removed += 1

        return removed

    def list_actions(self, session_id: str | None = None) -> list[PendingAction]:
        actions = []
        for slot in self._slots.copy().values():
            with slot.lock:
                if slot.action is None:
                    continue
                if session_id is not None and slot.action.session_id != session_id:
                    continue
                actions.append(slot.action.model_copy(deep=True))
        return sorted(actions, key=lambda a: a.created_at)

    def __len__(self) -> int:
        return sum(1 for slot in self._slots.copy().values() if slot.action is not None)
