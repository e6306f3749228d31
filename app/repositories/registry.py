"""Picks the persistence backend named by ISSUE_BACKEND. Callers never branch on it."""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from app.config import BACKEND_MEMORY, BACKEND_SQL, settings
from app.repositories.base import AccountStore, IssueRepository, NotificationStore
from app.repositories.memory import (
    InMemoryAccountStore,
    InMemoryIssueRepository,
    InMemoryNotificationStore,
    get_memory_store,
)
from app.repositories.sql import SqlAccountStore, SqlIssueRepository, SqlNotificationStore


@dataclass
class Backend:
    issues: IssueRepository
    notifications: NotificationStore
    accounts: AccountStore


def build_backend(db: Optional[Session], kind: Optional[str] = None) -> Backend:
    kind = kind or settings.ISSUE_BACKEND
    if kind == BACKEND_MEMORY:
        store = get_memory_store()
        return Backend(
            issues=InMemoryIssueRepository(store),
            notifications=InMemoryNotificationStore(store),
            accounts=InMemoryAccountStore(store),
        )
    if kind == BACKEND_SQL:
        if db is None:
            raise RuntimeError("The sql backend needs a database session")
        return Backend(
            issues=SqlIssueRepository(db),
            notifications=SqlNotificationStore(db),
            accounts=SqlAccountStore(db),
        )
    raise RuntimeError(f"Unknown backend '{kind}'")
