"""
Notification dispatcher.

Delivery is best-effort: a failure to store a notification is logged and
swallowed so the mutation that triggered it is never rolled back.
"""
import logging
from typing import List, Optional

from app.models.domain import Issue, Notification
from app.models.enums import NotificationType
from app.repositories.base import IssueRepository, NotificationDraft, NotificationStore

logger = logging.getLogger(__name__)

# Reporter-facing issue list in the client
MY_REPORTS_LINK = "/my-reports"


class NotificationDispatcher:

    def __init__(self, store: NotificationStore, issues: Optional[IssueRepository] = None):
        self.store = store
        self.issues = issues

    def notify(
        self,
        recipient_id: str,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        link: Optional[str] = None,
        issue_id: Optional[str] = None
    ) -> Optional[Notification]:
        """Create a notification; returns None if the store failed."""
        draft = NotificationDraft(
            user_id=recipient_id,
            title=title,
            message=message,
            type=type,
            link=link,
            issue_id=issue_id
        )
        try:
            notification = self.store.create(draft)
        except Exception:
            logger.exception("Failed to deliver notification '%s' to %s", title, recipient_id)
            return None
        logger.debug("Notified %s: %s", recipient_id, title)
        return notification

    def list_for(self, user_id: str) -> List[Notification]:
        return self.store.list_for(user_id)

    def unread_count(self, user_id: str) -> int:
        return sum(1 for n in self.store.list_for(user_id) if not n.is_read)

    def mark_read(self, notification_id: str) -> Optional[Notification]:
        return self.store.mark_read(notification_id)

    def mark_all_read(self, user_id: str) -> int:
        return self.store.mark_all_read(user_id)

    def resolve_target(self, notification: Notification) -> Optional[Issue]:
        """The issue a notification points at, or None once it has been deleted."""
        if not notification.issue_id or self.issues is None:
            return None
        return self.issues.find(notification.issue_id)
