"""Pydantic schemas for request/response validation."""
from datetime import datetime
from typing import Optional, List, Dict
from pydantic import BaseModel, ConfigDict, Field
from app.models.enums import (
    Role,
    IssueStatus,
    IssueCategory,
    IssuePriority,
    NotificationType
)
from app.models.views import CommentView, IssueView  # noqa: F401


# Account schemas
class AccountRegister(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, max_length=120)
    department: Optional[str] = None
    phone: Optional[str] = None
    role: Role = Role.REPORTER


class LoginRequest(BaseModel):
    email: str
    password: str


class AccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    department: Optional[str]
    phone: Optional[str]
    role: Role
    created_at: datetime


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=120)
    department: Optional[str] = None
    phone: Optional[str] = None


class PasswordChange(BaseModel):
    new_password: str
    confirm_password: str


# Issue schemas
class IssueCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    category: IssueCategory
    priority: IssuePriority = IssuePriority.MEDIUM
    location_name: str = Field(..., min_length=1)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    is_anonymous: bool = False


class StatusChange(BaseModel):
    status: IssueStatus


class PriorityChange(BaseModel):
    priority: IssuePriority


class AssigneeChange(BaseModel):
    assignee_id: Optional[str] = None


class CommentCreate(BaseModel):
    content: str = Field(..., max_length=5000)
    is_internal: bool = False


# Notification schemas
class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType
    is_read: bool
    link: Optional[str]
    issue_id: Optional[str]
    created_at: datetime


class NotificationList(BaseModel):
    unread: int
    items: List[NotificationResponse]


class MarkAllReadResponse(BaseModel):
    updated: int


# Statistics schemas
class StatisticsResponse(BaseModel):
    """Counts by status, category and priority."""
    total: int
    by_status: Dict[str, int]
    by_category: Dict[str, int]
    by_priority: Dict[str, int]


class DashboardResponse(BaseModel):
    statistics: StatisticsResponse
    recent_issues: List[IssueView]


# Error response
class ErrorResponse(BaseModel):
    """Body returned for NotFound / Validation / PermissionDenied."""
    detail: str
