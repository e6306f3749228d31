"""
Issue lifecycle controller.

The only component allowed to change an issue's status, priority or
assignee. Every operation takes the acting account explicitly, checks it,
mutates the repository, then asks the dispatcher to fan out notifications.
"""
import logging
from typing import Optional

from app.models.domain import Account, Comment, Issue
from app.models.enums import IssueCategory, IssuePriority, IssueStatus, NotificationType, Role
from app.repositories.base import (
    AccountStore,
    CommentDraft,
    IssueDraft,
    IssueRepository,
    coerce_enum,
)
from app.services.errors import NotFoundError, PermissionDeniedError, ValidationError
from app.services.notifications import MY_REPORTS_LINK, NotificationDispatcher

logger = logging.getLogger(__name__)


class IssueLifecycle:
    """Enforces who may change what, and which notifications each change produces."""

    def __init__(
        self,
        issues: IssueRepository,
        dispatcher: NotificationDispatcher,
        accounts: Optional[AccountStore] = None
    ):
        self.issues = issues
        self.dispatcher = dispatcher
        self.accounts = accounts

    def submit_issue(
        self,
        actor: Account,
        title: str,
        description: str,
        category: IssueCategory,
        location_name: str,
        priority: IssuePriority = IssuePriority.MEDIUM,
        is_anonymous: bool = False,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None
    ) -> Issue:
        """
        Report a new issue on behalf of ``actor``.

        The actor's id and real name are stored; anonymity is applied when
        the issue is rendered, not here.
        """
        title = (title or "").strip()
        description = (description or "").strip()
        location_name = (location_name or "").strip()
        if not title:
            raise ValidationError("Title is required")
        if not description:
            raise ValidationError("Description is required")
        if not location_name:
            raise ValidationError("Location is required")

        issue = self.issues.create(IssueDraft(
            title=title,
            description=description,
            category=coerce_enum(IssueCategory, category, "category"),
            priority=coerce_enum(IssuePriority, priority, "priority"),
            location_name=location_name,
            latitude=latitude,
            longitude=longitude,
            reporter_id=actor.id,
            reporter_name=actor.name,
            is_anonymous=bool(is_anonymous)
        ))
        logger.info("Issue %s submitted by %s", issue.id, actor.id)
        return issue

    def change_status(self, actor: Account, issue_id: str, new_status: IssueStatus) -> Issue:
        """
        Move an issue to ``new_status``.

        Invariants:
        - Only staff/admin may change status; a refused call leaves the issue untouched
        - Any status is reachable from any other (reopening is allowed)
        - Exactly one notification goes to the reporter, success when resolved
        """
        self._require_staff(actor, "change issue status")
        new_status = coerce_enum(IssueStatus, new_status, "status")

        issue = self.issues.update(issue_id, status=new_status)
        logger.info("Issue %s moved to %s by %s", issue.id, new_status.value, actor.id)

        self.dispatcher.notify(
            recipient_id=issue.reporter_id,
            title="Issue Status Updated",
            message=f'Your issue "{issue.title}" status has been changed to {new_status.label}.',
            type=NotificationType.SUCCESS if new_status == IssueStatus.RESOLVED else NotificationType.INFO,
            link=MY_REPORTS_LINK,
            issue_id=issue.id
        )
        return issue

    def change_priority(self, actor: Account, issue_id: str, new_priority: IssuePriority) -> Issue:
        """Re-prioritize an issue (staff/admin only); the reporter is told."""
        self._require_staff(actor, "change issue priority")
        new_priority = coerce_enum(IssuePriority, new_priority, "priority")

        issue = self.issues.update(issue_id, priority=new_priority)
        logger.info("Issue %s priority set to %s by %s", issue.id, new_priority.value, actor.id)

        self.dispatcher.notify(
            recipient_id=issue.reporter_id,
            title="Issue Priority Updated",
            message=f'Your issue "{issue.title}" priority has been changed to {new_priority.value}.',
            type=NotificationType.INFO,
            link=MY_REPORTS_LINK,
            issue_id=issue.id
        )
        return issue

    def assign_issue(self, actor: Account, issue_id: str, assignee_id: Optional[str]) -> Issue:
        """
        Set or clear the assignee (staff/admin only).

        The assignee must be a staff/admin account when accounts are known.
        The assignee is notified unless they assigned themselves.
        """
        self._require_staff(actor, "assign issues")

        if assignee_id is not None and self.accounts is not None:
            assignee = self.accounts.find(assignee_id)
            if assignee is None:
                raise NotFoundError("Account", assignee_id)
            if not assignee.is_staff:
                raise ValidationError("Issues can only be assigned to staff or admin accounts")

        issue = self.issues.update(issue_id, assigned_to=assignee_id)
        logger.info("Issue %s assigned to %s by %s", issue.id, assignee_id, actor.id)

        if assignee_id is not None and assignee_id != actor.id:
            self.dispatcher.notify(
                recipient_id=assignee_id,
                title="Issue Assigned to You",
                message=f'You have been assigned the issue "{issue.title}".',
                type=NotificationType.INFO,
                link=f"/admin/issues/{issue.id}",
                issue_id=issue.id
            )
        return issue

    def add_comment(self, actor: Account, issue_id: str, content: str, is_internal: bool = False) -> Comment:
        """
        Append a comment to an issue thread.

        Invariants:
        - Content must be non-empty after trimming
        - Reporters only comment on their own issues, and never internally
          (the flag is silently dropped)
        - A public comment by anyone but the reporter notifies the reporter;
          internal notes and self-comments never notify
        """
        content = (content or "").strip()
        issue = self.issues.get(issue_id)
        if not content:
            raise ValidationError("Comment cannot be empty")

        if not actor.is_staff:
            if issue.reporter_id != actor.id:
                logger.warning("Refused comment by %s on issue %s they did not report", actor.id, issue_id)
                raise PermissionDeniedError("You can only comment on issues you reported")
            is_internal = False

        comment = self.issues.append_comment(issue_id, CommentDraft(
            user_id=actor.id,
            user_name=actor.name,
            content=content,
            is_internal=bool(is_internal)
        ))
        logger.info("Comment %s added to issue %s (internal=%s)", comment.id, issue_id, comment.is_internal)

        if not comment.is_internal and actor.id != issue.reporter_id:
            who = "An administrator" if Role(actor.role) == Role.ADMIN else "A staff member"
            self.dispatcher.notify(
                recipient_id=issue.reporter_id,
                title="New Comment on Your Issue",
                message=f'{who} commented on "{issue.title}".',
                type=NotificationType.INFO,
                link=MY_REPORTS_LINK,
                issue_id=issue.id
            )
        return comment

    def delete_issue(self, actor: Account, issue_id: str) -> None:
        """
        Retract an issue. Only its reporter may do this; nobody is notified.

        Deleting an already deleted issue raises NotFoundError again.
        """
        issue = self.issues.get(issue_id)
        if issue.reporter_id != actor.id:
            logger.warning("Refused delete of issue %s by non-reporter %s", issue_id, actor.id)
            raise PermissionDeniedError("Only the reporter can delete this issue")

        self.issues.delete(issue_id)
        logger.info("Issue %s deleted by its reporter", issue_id)

    def _require_staff(self, actor: Account, action: str) -> None:
        if not actor.is_staff:
            logger.warning("Refused %s for %s account %s", action, Role(actor.role).value, actor.id)
            raise PermissionDeniedError(f"Only staff or admin accounts can {action}")
