"""Read models: an issue as it is rendered for one actor."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from app.models.enums import IssueCategory, IssuePriority, IssueStatus


class CommentView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    issue_id: str
    user_id: Optional[str]
    user_name: str
    content: str
    is_internal: bool
    created_at: datetime


class IssueView(BaseModel):
    """An issue as rendered for one actor: anonymity and internal notes already applied."""
    id: str
    title: str
    description: str
    category: IssueCategory
    priority: IssuePriority
    status: IssueStatus
    location_name: str
    latitude: Optional[float]
    longitude: Optional[float]
    reporter_id: Optional[str]
    reporter_name: str
    is_anonymous: bool
    assigned_to: Optional[str]
    comments: List[CommentView] = []
    created_at: datetime
    updated_at: datetime
