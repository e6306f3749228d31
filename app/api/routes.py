"""API routes for reporting, triaging and following campus issues."""
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from typing import List, Optional

from app.api.dependencies import (
    end_session,
    get_backend,
    get_current_actor,
    get_directory,
    get_dispatcher,
    get_lifecycle,
    start_session
)
from app.api.schemas import (
    AccountRegister,
    AccountResponse,
    AssigneeChange,
    CommentCreate,
    CommentView,
    DashboardResponse,
    ErrorResponse,
    IssueCreate,
    IssueView,
    LoginRequest,
    MarkAllReadResponse,
    NotificationList,
    NotificationResponse,
    PasswordChange,
    PriorityChange,
    ProfileUpdate,
    StatisticsResponse,
    StatusChange
)
from app.models.domain import Account
from app.models.enums import IssueCategory, IssueStatus
from app.repositories.registry import Backend
from app.services.errors import NotFoundError, PermissionDeniedError
from app.services.identity import AccountDirectory
from app.services.lifecycle import IssueLifecycle
from app.services.notifications import NotificationDispatcher
from app.services.statistics import compute_statistics, filter_issues, recent_activity, sort_newest_first
from app.services.visibility import issue_view

router = APIRouter()

ERRORS = {
    400: {"model": ErrorResponse, "description": "Validation error"},
    403: {"model": ErrorResponse, "description": "Permission denied"},
    404: {"model": ErrorResponse, "description": "Not found"},
}


def _scoped_issues(actor: Account, backend: Backend):
    """Staff/admin see every issue; reporters see their own."""
    if actor.is_staff:
        return backend.issues.list_all()
    return backend.issues.list_by_reporter(actor.id)


# Account endpoints
@router.post("/auth/register", response_model=AccountResponse, status_code=status.HTTP_201_CREATED, responses=ERRORS)
def register(request: Request, data: AccountRegister, directory: AccountDirectory = Depends(get_directory)):
    """Create an account and sign it in. Admin accounts cannot be self-registered."""
    account = directory.register(
        email=data.email,
        password=data.password,
        name=data.name,
        department=data.department,
        phone=data.phone,
        role=data.role
    )
    start_session(request, account)
    return account


@router.post("/auth/login", response_model=AccountResponse)
def login(request: Request, data: LoginRequest, directory: AccountDirectory = Depends(get_directory)):
    """Check credentials and start a session (signed cookie)."""
    account = directory.authenticate(data.email, data.password)
    if account is None:
        end_session(request)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    start_session(request, account)
    return account


@router.post("/auth/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(request: Request):
    end_session(request)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=AccountResponse)
def me(actor: Account = Depends(get_current_actor)):
    return actor


@router.put("/me", response_model=AccountResponse, responses=ERRORS)
def update_profile(
    data: ProfileUpdate,
    actor: Account = Depends(get_current_actor),
    directory: AccountDirectory = Depends(get_directory)
):
    """Edit name, department and phone. Omitted fields are left as they are."""
    return directory.update_profile(actor, name=data.name, department=data.department, phone=data.phone)


@router.put("/me/password", status_code=status.HTTP_204_NO_CONTENT, responses=ERRORS)
def change_password(
    data: PasswordChange,
    actor: Account = Depends(get_current_actor),
    directory: AccountDirectory = Depends(get_directory)
):
    directory.change_password(actor, data.new_password, data.confirm_password)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/staff", response_model=List[AccountResponse], responses=ERRORS)
def list_staff(
    actor: Account = Depends(get_current_actor),
    directory: AccountDirectory = Depends(get_directory)
):
    """Staff and admin accounts, for picking an assignee. Staff/admin only."""
    if not actor.is_staff:
        raise PermissionDeniedError("Only staff or admin accounts can list staff")
    return directory.list_staff()


# Issue endpoints
@router.post("/issues", response_model=IssueView, status_code=status.HTTP_201_CREATED, responses=ERRORS)
def submit_issue(
    data: IssueCreate,
    actor: Account = Depends(get_current_actor),
    lifecycle: IssueLifecycle = Depends(get_lifecycle)
):
    """Report a new issue. It starts in the new state with no comments."""
    issue = lifecycle.submit_issue(
        actor,
        title=data.title,
        description=data.description,
        category=data.category,
        priority=data.priority,
        location_name=data.location_name,
        latitude=data.latitude,
        longitude=data.longitude,
        is_anonymous=data.is_anonymous
    )
    return issue_view(actor, issue)


@router.get("/issues", response_model=List[IssueView])
def list_issues(
    search: Optional[str] = None,
    status_filter: Optional[IssueStatus] = Query(None, alias="status"),
    category: Optional[IssueCategory] = None,
    actor: Account = Depends(get_current_actor),
    backend: Backend = Depends(get_backend)
):
    """List issues newest first: all of them for staff/admin, own reports for reporters."""
    issues = filter_issues(_scoped_issues(actor, backend), search=search, status=status_filter, category=category)
    return [issue_view(actor, issue) for issue in sort_newest_first(issues)]


@router.get("/issues/{issue_id}", response_model=IssueView, responses=ERRORS)
def get_issue(
    issue_id: str,
    actor: Account = Depends(get_current_actor),
    backend: Backend = Depends(get_backend)
):
    """Get one issue, rendered for the caller's role."""
    return issue_view(actor, backend.issues.get(issue_id))


@router.put("/issues/{issue_id}/status", response_model=IssueView, responses=ERRORS)
def change_status(
    issue_id: str,
    data: StatusChange,
    actor: Account = Depends(get_current_actor),
    lifecycle: IssueLifecycle = Depends(get_lifecycle)
):
    """
    Change an issue's status (staff/admin only).
    Side effect: the reporter receives an "Issue Status Updated" notification.
    """
    issue = lifecycle.change_status(actor, issue_id, data.status)
    return issue_view(actor, issue)


@router.put("/issues/{issue_id}/priority", response_model=IssueView, responses=ERRORS)
def change_priority(
    issue_id: str,
    data: PriorityChange,
    actor: Account = Depends(get_current_actor),
    lifecycle: IssueLifecycle = Depends(get_lifecycle)
):
    issue = lifecycle.change_priority(actor, issue_id, data.priority)
    return issue_view(actor, issue)


@router.put("/issues/{issue_id}/assignee", response_model=IssueView, responses=ERRORS)
def assign_issue(
    issue_id: str,
    data: AssigneeChange,
    actor: Account = Depends(get_current_actor),
    lifecycle: IssueLifecycle = Depends(get_lifecycle)
):
    """Assign (or with a null assignee_id, unassign) an issue."""
    issue = lifecycle.assign_issue(actor, issue_id, data.assignee_id)
    return issue_view(actor, issue)


@router.post("/issues/{issue_id}/comments", response_model=CommentView, status_code=status.HTTP_201_CREATED, responses=ERRORS)
def add_comment(
    issue_id: str,
    data: CommentCreate,
    actor: Account = Depends(get_current_actor),
    lifecycle: IssueLifecycle = Depends(get_lifecycle)
):
    """
    Comment on an issue.
    Reporter comments are never internal. Public staff comments notify the reporter.
    """
    return lifecycle.add_comment(actor, issue_id, data.content, data.is_internal)


@router.delete("/issues/{issue_id}", status_code=status.HTTP_204_NO_CONTENT, responses=ERRORS)
def delete_issue(
    issue_id: str,
    actor: Account = Depends(get_current_actor),
    lifecycle: IssueLifecycle = Depends(get_lifecycle)
):
    """Retract an issue. Only its reporter can do this."""
    lifecycle.delete_issue(actor, issue_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Statistics endpoints
@router.get("/statistics", response_model=StatisticsResponse)
def get_statistics(
    actor: Account = Depends(get_current_actor),
    backend: Backend = Depends(get_backend)
):
    """Counts by status, category and priority, scoped to the caller's own reports for reporters."""
    stats = compute_statistics(_scoped_issues(actor, backend))
    return StatisticsResponse(**vars(stats))


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    limit: int = Query(5, ge=1, le=50),
    actor: Account = Depends(get_current_actor),
    backend: Backend = Depends(get_backend)
):
    """Statistics plus the most recently updated issues."""
    issues = _scoped_issues(actor, backend)
    stats = compute_statistics(issues)
    return DashboardResponse(
        statistics=StatisticsResponse(**vars(stats)),
        recent_issues=[issue_view(actor, issue) for issue in recent_activity(issues, limit)]
    )


# Notification endpoints
@router.get("/notifications", response_model=NotificationList)
def list_notifications(
    actor: Account = Depends(get_current_actor),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
):
    """The caller's notifications, newest first."""
    items = dispatcher.list_for(actor.id)
    return NotificationList(
        unread=sum(1 for n in items if not n.is_read),
        items=[NotificationResponse.model_validate(n) for n in items]
    )


@router.put("/notifications/read-all", response_model=MarkAllReadResponse)
def mark_all_notifications_read(
    actor: Account = Depends(get_current_actor),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
):
    return MarkAllReadResponse(updated=dispatcher.mark_all_read(actor.id))


@router.put("/notifications/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT, responses=ERRORS)
def mark_notification_read(
    notification_id: str,
    actor: Account = Depends(get_current_actor),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
):
    """Mark one notification read. Unknown ids are ignored."""
    notification = dispatcher.store.find(notification_id)
    if notification is not None and notification.user_id != actor.id:
        raise PermissionDeniedError("You can only update your own notifications")
    dispatcher.mark_read(notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/notifications/{notification_id}/target", response_model=IssueView, responses=ERRORS)
def resolve_notification_target(
    notification_id: str,
    actor: Account = Depends(get_current_actor),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
):
    """The issue a notification points at. 404 when the issue has since been deleted."""
    notification = dispatcher.store.find(notification_id)
    if notification is None or notification.user_id != actor.id:
        raise NotFoundError("Notification", notification_id)
    issue = dispatcher.resolve_target(notification)
    if issue is None:
        raise NotFoundError("Issue", notification.issue_id or "")
    return issue_view(actor, issue)
