"""Error classes for the action confirmation workflow."""


class ActionError(Exception):
    """Base class for confirmation workflow errors."""


class UnknownActionKindError(ActionError):
    """Raised when a preview is requested for an unregistered action kind."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"Unknown action kind: {kind}")
        self.kind = kind


class ActionNotFoundError(ActionError):
    """Raised when an action id is missing, expired, or already handled."""

    def __init__(self, action_id: str) -> None:
        super().__init__(f"Action not found or already processed: {action_id}")
        self.action_id = action_id


class FieldNotEditableError(ActionError):
    """Raised when an edit names a field outside the kind's editable set."""

    def __init__(self, field: str, kind: str) -> None:
        super().__init__(f'Field "{field}" cannot be edited for {kind} actions')
        self.field = field
        self.kind = kind
