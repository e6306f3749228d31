"""Domain models - accounts, issues, their comment threads and notifications."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from app.database import Base
from app.models.enums import (
    Role,
    IssueStatus,
    IssueCategory,
    IssuePriority,
    NotificationType
)


def new_id(prefix: str) -> str:
    """Prefixed identifier shared by every backend, e.g. ``issue-3f2a...``."""
    return f"{prefix}-{uuid.uuid4().hex}"


class Account(Base):
    """
    A user of the tracker.

    Invariants:
    - email is unique, compared case-insensitively (stored lower-cased)
    - id never changes once created
    """
    __tablename__ = "accounts"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)
    department = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    role = Column(SQLEnum(Role), nullable=False, default=Role.REPORTER)
    password_hash = Column(String, nullable=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    @property
    def is_staff(self) -> bool:
        return Role(self.role).is_staff


class Issue(Base):
    """
    A reported problem tracked through: new → in-progress → under-review → resolved → closed.

    Invariants enforced here and in the repositories:
    - status is always one of the five allowed states
    - updated_at >= created_at
    - reporter_id never changes after creation
    """
    __tablename__ = "issues"

    id = Column(String, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=False)
    category = Column(SQLEnum(IssueCategory), nullable=False)
    priority = Column(SQLEnum(IssuePriority), nullable=False, default=IssuePriority.MEDIUM)
    status = Column(SQLEnum(IssueStatus), nullable=False, default=IssueStatus.NEW)

    location_name = Column(String, nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    reporter_id = Column(String, nullable=False, index=True)
    reporter_name = Column(String, nullable=False)  # Real name; masked at the read boundary
    is_anonymous = Column(Boolean, nullable=False, default=False)
    assigned_to = Column(String, nullable=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    comments = relationship(
        "Comment",
        back_populates="issue",
        cascade="all, delete-orphan",
        order_by="Comment.position"
    )


class Comment(Base):
    """
    A message on an issue thread.

    Invariants:
    - Append-only, never edited
    - Internal comments are only shown to staff/admin
    """
    __tablename__ = "comments"

    id = Column(String, primary_key=True, index=True)
    issue_id = Column(String, ForeignKey("issues.id"), nullable=False)
    position = Column(Integer, nullable=False)  # Insertion order within the thread
    user_id = Column(String, nullable=False)
    user_name = Column(String, nullable=False)
    content = Column(String, nullable=False)
    is_internal = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Relationship
    issue = relationship("Issue", back_populates="comments")


class Notification(Base):
    """
    A per-user message produced by lifecycle side effects.

    issue_id is a weak reference (no foreign key): it may dangle after the
    issue is deleted.
    """
    __tablename__ = "notifications"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(String, nullable=False)
    type = Column(SQLEnum(NotificationType), nullable=False, default=NotificationType.INFO)
    is_read = Column(Boolean, nullable=False, default=False)
    link = Column(String, nullable=True)
    issue_id = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
