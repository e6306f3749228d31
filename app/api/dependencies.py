"""FastAPI dependencies: backend wiring and the acting account."""
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.domain import Account
from app.repositories.registry import Backend, build_backend
from app.services.identity import AccountDirectory
from app.services.lifecycle import IssueLifecycle
from app.services.notifications import NotificationDispatcher


def get_backend(db: Session = Depends(get_db)) -> Backend:
    return build_backend(db)


def get_directory(backend: Backend = Depends(get_backend)) -> AccountDirectory:
    return AccountDirectory(backend.accounts)


def get_dispatcher(backend: Backend = Depends(get_backend)) -> NotificationDispatcher:
    return NotificationDispatcher(backend.notifications, backend.issues)


def get_lifecycle(
    backend: Backend = Depends(get_backend),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
) -> IssueLifecycle:
    return IssueLifecycle(backend.issues, dispatcher, backend.accounts)


SESSION_USER_KEY = "user_id"


def start_session(request: Request, account: Account) -> None:
    request.session.clear()
    request.session[SESSION_USER_KEY] = account.id


def end_session(request: Request) -> None:
    request.session.clear()


def get_current_actor(
    request: Request,
    directory: AccountDirectory = Depends(get_directory)
) -> Account:
    """The caller, taken from the signed session cookie set at login or signup."""
    actor = directory.resolve_current_actor(request.session.get(SESSION_USER_KEY))
    if actor is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return actor
