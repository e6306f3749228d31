"""SQLAlchemy-backed repositories. One Session per request; every write commits."""
import logging
from typing import Any, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

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

logger = logging.getLogger(__name__)


class SqlIssueRepository(IssueRepository):

    def __init__(self, db: Session):
        self.db = db

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
            created_at=now,
            updated_at=now
        )
        self.db.add(issue)
        self.db.commit()
        self.db.refresh(issue)
        return issue

    def find(self, issue_id: str) -> Optional[Issue]:
        return self.db.query(Issue).filter(Issue.id == issue_id).first()

    def list_all(self) -> List[Issue]:
        return self.db.query(Issue).all()

    def list_by_reporter(self, reporter_id: str) -> List[Issue]:
        return self.db.query(Issue).filter(Issue.reporter_id == reporter_id).all()

    def update(self, issue_id: str, **fields: Any) -> Issue:
        changes = validated_issue_changes(fields)
        issue = self.get(issue_id)
        for key, value in changes.items():
            setattr(issue, key, value)
        issue.updated_at = stamp(issue.created_at)
        self.db.commit()
        self.db.refresh(issue)
        return issue

    def delete(self, issue_id: str) -> None:
        issue = self.get(issue_id)
        # delete-orphan cascade removes the comment thread
        self.db.delete(issue)
        self.db.commit()

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
        self.db.commit()
        self.db.refresh(comment)
        return comment


class SqlNotificationStore(NotificationStore):

    def __init__(self, db: Session):
        self.db = db

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
        self.db.add(notification)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(notification)
        return notification

    def find(self, notification_id: str) -> Optional[Notification]:
        return self.db.query(Notification).filter(Notification.id == notification_id).first()

    def list_for(self, user_id: str) -> List[Notification]:
        return self.db.query(Notification).filter(
            Notification.user_id == user_id
        ).order_by(
            Notification.created_at.desc()
        ).all()

    def mark_read(self, notification_id: str) -> Optional[Notification]:
        notification = self.find(notification_id)
        if notification is None:
            logger.debug("mark_read ignored for unknown notification %s", notification_id)
            return None
        if not notification.is_read:
            notification.is_read = True
            self.db.commit()
            self.db.refresh(notification)
        return notification

    def mark_all_read(self, user_id: str) -> int:
        changed = self.db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.is_read.is_(False)
        ).update({Notification.is_read: True}, synchronize_session="fetch")
        self.db.commit()
        return changed


class SqlAccountStore(AccountStore):

    def __init__(self, db: Session):
        self.db = db

    def add(self, account: Account) -> Account:
        self.db.add(account)
        self.db.commit()
        self.db.refresh(account)
        return account

    def find(self, account_id: str) -> Optional[Account]:
        return self.db.query(Account).filter(Account.id == account_id).first()

    def find_by_email(self, email: str) -> Optional[Account]:
        return self.db.query(Account).filter(func.lower(Account.email) == email.strip().lower()).first()

    def list_all(self) -> List[Account]:
        return self.db.query(Account).order_by(Account.name).all()

    def save(self, account: Account) -> Account:
        self.db.commit()
        self.db.refresh(account)
        return account

