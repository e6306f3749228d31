"""
Persistence contracts shared by every backend.

The lifecycle controller only talks to these interfaces; which concrete
backend sits behind them (database or in-process memory) is decided once,
by configuration, in ``app.repositories``.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar

from app.models.domain import Account, Comment, Issue, Notification
from app.models.enums import IssueCategory, IssuePriority, IssueStatus, NotificationType
from app.services.errors import NotFoundError, ValidationError

E = TypeVar("E", bound=Enum)

# Fields an update may never touch
IMMUTABLE_ISSUE_FIELDS = frozenset({"id", "reporter_id", "created_at", "updated_at", "comments"})

UPDATABLE_ISSUE_FIELDS = frozenset({
    "title",
    "description",
    "category",
    "priority",
    "status",
    "location_name",
    "latitude",
    "longitude",
    "reporter_name",
    "is_anonymous",
    "assigned_to",
})


def coerce_enum(enum_cls: Type[E], value: Any, field: str) -> E:
    """Parse ``value`` into ``enum_cls`` or raise ValidationError naming the field."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {field} '{value}'. Allowed values: {allowed}") from None


def stamp(created_at: Optional[datetime] = None) -> datetime:
    """Current UTC time, never earlier than ``created_at``."""
    now = datetime.utcnow()
    if created_at is not None and now < created_at:
        return created_at
    return now


@dataclass
class IssueDraft:
    title: str
    description: str
    category: IssueCategory
    location_name: str
    reporter_id: str
    reporter_name: str
    priority: IssuePriority = IssuePriority.MEDIUM
    is_anonymous: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass
class CommentDraft:
    user_id: str
    user_name: str
    content: str
    is_internal: bool = False


@dataclass
class NotificationDraft:
    user_id: str
    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    link: Optional[str] = None
    issue_id: Optional[str] = None


def validated_issue_changes(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Check a partial update before it is merged into an Issue.

    Enumerated fields are coerced; identity and timestamp fields are refused.
    """
    changes = {}
    for key, value in fields.items():
        if key in IMMUTABLE_ISSUE_FIELDS:
            raise ValidationError(f"Field '{key}' cannot be updated")
        if key not in UPDATABLE_ISSUE_FIELDS:
            raise ValidationError(f"Unknown issue field '{key}'")
        if key == "status":
            value = coerce_enum(IssueStatus, value, "status")
        elif key == "category":
            value = coerce_enum(IssueCategory, value, "category")
        elif key == "priority":
            value = coerce_enum(IssuePriority, value, "priority")
        changes[key] = value
    return changes


class IssueRepository(ABC):
    """Owns issues and their comment threads. Never emits notifications."""

    @abstractmethod
    def create(self, draft: IssueDraft) -> Issue:
        """Persist a new issue: fresh id, status new, no comments, created_at == updated_at."""

    @abstractmethod
    def find(self, issue_id: str) -> Optional[Issue]:
        ...

    def get(self, issue_id: str) -> Issue:
        issue = self.find(issue_id)
        if issue is None:
            raise NotFoundError("Issue", issue_id)
        return issue

    @abstractmethod
    def list_all(self) -> List[Issue]:
        """Unordered snapshot; callers sort."""

    @abstractmethod
    def list_by_reporter(self, reporter_id: str) -> List[Issue]:
        ...

    @abstractmethod
    def update(self, issue_id: str, **fields: Any) -> Issue:
        """Merge ``fields`` and stamp updated_at. NotFoundError if absent."""

    @abstractmethod
    def delete(self, issue_id: str) -> None:
        """Remove the issue and its comments. NotFoundError if already absent."""

    @abstractmethod
    def append_comment(self, issue_id: str, draft: CommentDraft) -> Comment:
        ...


class NotificationStore(ABC):
    """Owns notifications. References issues and accounts by id only."""

    @abstractmethod
    def create(self, draft: NotificationDraft) -> Notification:
        ...

    @abstractmethod
    def find(self, notification_id: str) -> Optional[Notification]:
        ...

    @abstractmethod
    def list_for(self, user_id: str) -> List[Notification]:
        """All notifications for ``user_id``, newest first."""

    @abstractmethod
    def mark_read(self, notification_id: str) -> Optional[Notification]:
        """Set is_read. Absent ids are a no-op returning None."""

    @abstractmethod
    def mark_all_read(self, user_id: str) -> int:
        """Mark every notification of ``user_id`` read; returns how many changed."""


class AccountStore(ABC):

    @abstractmethod
    def add(self, account: Account) -> Account:
        ...

    @abstractmethod
    def find(self, account_id: str) -> Optional[Account]:
        ...

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[Account]:
        """Case-insensitive lookup."""

    @abstractmethod
    def list_all(self) -> List[Account]:
        ...

    @abstractmethod
    def save(self, account: Account) -> Account:
        """Persist changes made to an already stored account."""
