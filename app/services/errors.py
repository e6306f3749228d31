"""Errors raised by the repositories and the lifecycle controller."""


class IssueTrackerError(Exception):
    """Base class - carries a message safe to show to the caller."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class NotFoundError(IssueTrackerError):
    """Referenced issue, comment, notification or account does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")


class ValidationError(IssueTrackerError):
    """Empty content or a value outside its enumeration."""


class PermissionDeniedError(IssueTrackerError):
    """
    Raised when the actor lacks the role or ownership for a mutation.
    The target is left unmodified.
    """
