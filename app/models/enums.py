"""Enums for the issue tracker - these define the valid values for roles, states and categories."""
from enum import Enum


class Role(str, Enum):
    """Account roles. Staff and admin share triage rights."""
    REPORTER = "reporter"
    STAFF = "staff"
    ADMIN = "admin"

    @property
    def is_staff(self) -> bool:
        return self in (Role.STAFF, Role.ADMIN)


class IssueStatus(str, Enum):
    """The five states an Issue can be in. No other states are allowed."""
    NEW = "new"
    IN_PROGRESS = "in-progress"
    UNDER_REVIEW = "under-review"
    RESOLVED = "resolved"
    CLOSED = "closed"

    @property
    def label(self) -> str:
        """Human readable form used in notification messages."""
        return self.value.replace("-", " ")


class IssueCategory(str, Enum):
    """Closed set of issue categories."""
    MAINTENANCE = "maintenance"
    SAFETY = "safety"
    CLEANLINESS = "cleanliness"
    NOISE = "noise"
    ACCESSIBILITY = "accessibility"
    TECHNICAL = "technical"
    HARASSMENT = "harassment"
    OTHER = "other"


class IssuePriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class NotificationType(str, Enum):
    """Severity of a notification."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
