"""
Visibility policy, applied when an issue is rendered for an actor.

Storage is never filtered; every view handed to a client goes through here.
"""
from typing import List

from app.models.domain import Account, Comment, Issue
from app.models.views import CommentView, IssueView
from app.services.errors import PermissionDeniedError

ANONYMOUS_NAME = "Anonymous"


def display_reporter_name(issue: Issue) -> str:
    """Reporter name as shown to humans; anonymous issues never reveal it."""
    if issue.is_anonymous:
        return ANONYMOUS_NAME
    return issue.reporter_name


def visible_comments(actor: Account, issue: Issue) -> List[Comment]:
    """Internal comments are for staff/admin only."""
    if actor.is_staff:
        return list(issue.comments)
    return [c for c in issue.comments if not c.is_internal]


def ensure_can_view(actor: Account, issue: Issue) -> None:
    """Reporters may only open their own issues."""
    if not actor.is_staff and issue.reporter_id != actor.id:
        raise PermissionDeniedError("You can only view issues you reported")


def comment_view(issue: Issue, comment: Comment, reveal_reporter: bool) -> CommentView:
    """The reporter's own comments on an anonymous issue carry no name or id."""
    view = CommentView.model_validate(comment)
    if not reveal_reporter and comment.user_id == issue.reporter_id:
        view = view.model_copy(update={"user_id": None, "user_name": ANONYMOUS_NAME})
    return view


def issue_view(actor: Account, issue: Issue) -> IssueView:
    ensure_can_view(actor, issue)
    # The reporter keeps seeing their own id so the client can tell the issue is theirs
    reveal_reporter = not issue.is_anonymous or issue.reporter_id == actor.id
    return IssueView(
        id=issue.id,
        title=issue.title,
        description=issue.description,
        category=issue.category,
        priority=issue.priority,
        status=issue.status,
        location_name=issue.location_name,
        latitude=issue.latitude,
        longitude=issue.longitude,
        reporter_id=issue.reporter_id if reveal_reporter else None,
        reporter_name=display_reporter_name(issue),
        is_anonymous=issue.is_anonymous,
        assigned_to=issue.assigned_to,
        comments=[comment_view(issue, c, reveal_reporter) for c in visible_comments(actor, issue)],
        created_at=issue.created_at,
        updated_at=issue.updated_at
    )
