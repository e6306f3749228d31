"""Pytest configuration and shared fixtures."""
import os

# Keep the application's own engine away from the working directory
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["ISSUE_BACKEND"] = "sql"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, engine_options, get_db
from app.models.domain import Account, new_id
from app.models.enums import IssueCategory, IssuePriority, Role
from app.repositories.memory import reset_memory_store
from app.repositories.registry import build_backend
from app.services.identity import hash_password
from app.services.lifecycle import IssueLifecycle
from app.services.notifications import NotificationDispatcher

PASSWORD = "password123"
# Hashed once; bcrypt is deliberately slow
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
def db_session():
    """Create a fresh in-memory database for each test."""
    # StaticPool so the TestClient worker thread sees the same database
    engine = create_engine("sqlite:///:memory:", poolclass=StaticPool, **engine_options("sqlite:///:memory:"))
    Base.metadata.create_all(engine)

    TestingSessionLocal = sessionmaker(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    engine.dispose()


@pytest.fixture(params=["sql", "memory"])
def backend(request, db_session):
    """Every repository-level test runs against both backends."""
    reset_memory_store()
    yield build_backend(db_session, request.param)
    reset_memory_store()


def _make_account(backend, name, email, role):
    account = Account(
        id=new_id("user"),
        email=email,
        name=name,
        department="Campus",
        role=role,
        password_hash=PASSWORD_HASH
    )
    return backend.accounts.add(account)


@pytest.fixture
def reporter(backend):
    return _make_account(backend, "John Anderson", "john.student@university.edu", Role.REPORTER)


@pytest.fixture
def other_reporter(backend):
    return _make_account(backend, "Maya Chen", "maya.student@university.edu", Role.REPORTER)


@pytest.fixture
def staff(backend):
    return _make_account(backend, "Dr. Robert Williams", "prof.williams@university.edu", Role.STAFF)


@pytest.fixture
def admin(backend):
    return _make_account(backend, "Sarah Mitchell", "admin@university.edu", Role.ADMIN)


@pytest.fixture
def dispatcher(backend):
    return NotificationDispatcher(backend.notifications, backend.issues)


@pytest.fixture
def lifecycle(backend, dispatcher):
    return IssueLifecycle(backend.issues, dispatcher, backend.accounts)


@pytest.fixture
def sample_issue(lifecycle, reporter):
    """A freshly reported issue in the new state."""
    return lifecycle.submit_issue(
        reporter,
        title="Broken AC",
        description="The AC unit in the reading hall barely cools the room.",
        category=IssueCategory.MAINTENANCE,
        priority=IssuePriority.HIGH,
        location_name="Main Library - Reading Hall",
        latitude=40.7128,
        longitude=-74.006
    )


@pytest.fixture
def client(db_session):
    """HTTP client wired to the per-test database."""
    from app.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
