"""Confirmation workflow for side-effecting assistant actions."""

from graph_voice.actions.engine import ConfirmationEngine
from graph_voice.actions.errors import (
    ActionError,
    ActionNotFoundError,
    FieldNotEditableError,
    UnknownActionKindError,
)
from graph_voice.actions.kinds import ActionKind, ActionKindRegistry, ActionKindSpec
from graph_voice.actions.models import (
    ActionStatus,
    ContactLookup,
    DisplayPreview,
    ExecutionPayload,
    PendingAction,
)
from graph_voice.actions.preview import build_preview
from graph_voice.actions.store import ActionStore, InMemoryActionStore
from graph_voice.actions.sweeper import ExpirySweeper

__all__ = [
    "ConfirmationEngine",
    "ExpirySweeper",
    "ActionStore",
    "InMemoryActionStore",
    "build_preview",
    "ActionKind",
    "ActionKindRegistry",
    "ActionKindSpec",
    "ActionStatus",
    "ContactLookup",
    "DisplayPreview",
    "ExecutionPayload",
    "PendingAction",
    "ActionError",
    "ActionNotFoundError",
    "FieldNotEditableError",
    "UnknownActionKindError",
]
