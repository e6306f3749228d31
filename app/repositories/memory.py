"""
In-process backend. Holds the same model objects as the database backend,
never attached to a Session. Useful for local demos and tests.
"""
from typing import Any, Dict, List, Optional

from app.models.domain import Account, Comment, Issue, Notification, new_id
from app.models.enums import IssueStatus
from app.repositories.base import (
    AccountStore,
    CommentDraft,
    IssueDraft,
    IssueRepository,
    NotificationDraft,
    NotificationStore,
    stamp,
    validated_issue_changes,
)
from app.services.errors import NotFoundError


class MemoryStore:
    """The shared state behind the in-memory repositories."""

    def __init__(self) -> None:
        self.accounts: Dict[str, Account] = {}
        self.issues: Dict[str, Issue] = {}
        self.notifications: List[Notification] = []


_STORE: Optional[MemoryStore] = None


def get_memory_store() -> MemoryStore:
    global _STORE
    if _STORE is None:
        _STORE = MemoryStore()
    return _STORE


def reset_memory_store() -> None:
    global _STORE
    _STORE = None


class InMemoryIssueRepository(IssueRepository):

    def __init__(self, store: MemoryStore):
        self.store = store

    def create(self, draft: IssueDraft) -> Issue:
        now = stamp()
        issue = Issue(
            id=new_id("issue"),
            title=draft.title,
            description=draft.description,
            category=draft.category,
            priority=draft.priority,
            status=IssueStatus.NEW,
            location_name=draft.location_name,
            latitude=draft.latitude,
            longitude=draft.longitude,
            reporter_id=draft.reporter_id,
            reporter_name=draft.reporter_name,
            is_anonymous=draft.is_anonymous,
            assigned_to=None,
            created_at=now,
            updated_at=now
        )
        self.store.issues[issue.id] = issue
        return issue

    def find(self, issue_id: str) -> Optional[Issue]:
        return self.store.issues.get(issue_id)

    def list_all(self) -> List[Issue]:
        return list(self.store.issues.values())

    def list_by_reporter(self, reporter_id: str) -> List[Issue]:
        return [i for i in self.store.issues.values() if i.reporter_id == reporter_id]

    def update(self, issue_id: str, **fields: Any) -> Issue:
        changes = validated_issue_changes(fields)
        issue = self.get(issue_id)
        for key, value in changes.items():
            setattr(issue, key, value)
        issue.updated_at = stamp(issue.created_at)
        return issue

    def delete(self, issue_id: str) -> None:
        self.get(issue_id)
        del self.store.issues[issue_id]

    def append_comment(self, issue_id: str, draft: CommentDraft) -> Comment:
        issue = self.get(issue_id)
        comment = Comment(
            id=new_id("comment"),
            issue_id=issue.id,
            position=len(issue.comments),
            user_id=draft.user_id,
            user_name=draft.user_name,
            content=draft.content,
            is_internal=draft.is_internal,
            created_at=stamp()
        )
        issue.comments.append(comment)
        issue.updated_at = stamp(issue.created_at)
        return comment


class InMemoryNotificationStore(NotificationStore):

    def __init__(self, store: MemoryStore):
        self.store = store

    def create(self, draft: NotificationDraft) -> Notification:
        notification = Notification(
            id=new_id("notif"),
            user_id=draft.user_id,
            title=draft.title,
            message=draft.message,
            type=draft.type,
            is_read=False,
            link=draft.link,
            issue_id=draft.issue_id,
            created_at=stamp()
        )
        self.store.notifications.append(notification)
        return notification

    def find(self, notification_id: str) -> Optional[Notification]:
        for notification in self.store.notifications:
            if notification.id == notification_id:
                return notification
        return None

    def list_for(self, user_id: str) -> List[Notification]:
        # Walk newest-inserted first so equal timestamps still come out newest first
        mine = [n for n in reversed(self.store.notifications) if n.user_id == user_id]
        return sorted(mine, key=lambda n: n.created_at, reverse=True)

    def mark_read(self, notification_id: str) -> Optional[Notification]:
        notification = self.find(notification_id)
        if notification is not None:
            notification.is_read = True
        return notification

    def mark_all_read(self, user_id: str) -> int:
        changed = 0
        for notification in self.store.notifications:
            if notification.user_id == user_id and not notification.is_read:
                notification.is_read = True
                changed += 1
        return changed


class InMemoryAccountStore(AccountStore):

    def __init__(self, store: MemoryStore):
        self.store = store

    def add(self, account: Account) -> Account:
        self.store.accounts[account.id] = account
        return account

    def find(self, account_id: str) -> Optional[Account]:
        return self.store.accounts.get(account_id)

    def find_by_email(self, email: str) -> Optional[Account]:
        wanted = email.strip().lower()
        for account in self.store.accounts.values():
            if account.email.lower() == wanted:
                return account
        return None

    def list_all(self) -> List[Account]:
        return sorted(self.store.accounts.values(), key=lambda a: a.name)

    def save(self, account: Account) -> Account:
        if account.id not in self.store.accounts:
            raise NotFoundError("Account", account.id)
        self.store.accounts[account.id] = account
        return account
