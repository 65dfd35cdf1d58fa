"""
Shared pytest fixtures for the load tracker test suite.

Provides the Flask application, test clients, a clean database per test,
data factories for users and tasks, and helpers for authenticated requests.

Key Concepts Demonstrated:
- Session-scoped app, function-scoped database for isolation
- Factory fixtures with Faker-generated defaults
- Cookie-based authentication for the Flask test client
"""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any

import pytest
from faker import Faker

# Set testing environment before importing the app
os.environ["FLASK_ENV"] = "testing"
os.environ["TEST_JWT_SECRET_KEY"] = "test-jwt-secret-key-for-local-tests-123456"

from loadtracker import create_app, db
from loadtracker.models import LoadType, ScheduleDay, Task, User, default_formats
from loadtracker.session import issue_token

fake = Faker()

TEST_PASSWORD = "StrongPass123!"


# -----------------------------------------------------------------------------
# Application Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture(scope="session")
def app():
    """Create the application once for the whole test session."""
    application = create_app("testing")
    yield application


@pytest.fixture(scope="function")
def client(app):
    """Provide an unauthenticated test client."""
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture(scope="function")
def db_session(app):
    """
    Provide a clean database for each test.

    Creates all tables before the test, then rolls back and drops them
    afterwards.
    """
    with app.app_context():
        db.create_all()
        yield db
        db.session.rollback()
        db.drop_all()


# -----------------------------------------------------------------------------
# Test Data Factory Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def user_factory(db_session) -> Callable[..., User]:
    """Factory that creates and persists users."""

    def _create_user(username: str | None = None, password: str = TEST_PASSWORD) -> User:
        user = User(username=username or fake.unique.user_name())
        user.set_password(password)
        db_session.session.add(user)
        db_session.session.commit()
        return user

    return _create_user


@pytest.fixture
def task_factory(db_session) -> Callable[..., Task]:
    """
    Factory that creates and persists tasks.

    Example:
        def test_something(task_factory):
            task = task_factory(retailer="Retailer-A", completed=True)
    """

    def _create_task(
        *,
        retailer: str | None = None,
        day: str = ScheduleDay.MONDAY.value,
        load_type: str = LoadType.DIRECT.value,
        file_count: int = 9,
        completed: bool = False,
        files: list[dict[str, str]] | None = None,
    ) -> Task:
        task = Task(
            retailer=retailer or fake.company(),
            day=day,
            file_count=file_count,
            formats=default_formats(),
            files=files or [],
            completed=completed,
        )
        if load_type == LoadType.DIRECT.value:
            task.set_direct_load({"istTime": "10:30", "estTime": "00:00", "sqlQuery": ""})
        else:
            task.set_indirect_load(
                "retailer portal",
                {"websiteLink": fake.url(), "username": fake.user_name(), "password": "pw"},
            )
        db_session.session.add(task)
        db_session.session.commit()
        return task

    return _create_task


@pytest.fixture
def sample_task(task_factory) -> Task:
    return task_factory(retailer="Sample Retailer")


# -----------------------------------------------------------------------------
# Authentication Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def logged_in_user(user_factory) -> User:
    return user_factory(username="alice")


@pytest.fixture
def session_token(app, logged_in_user) -> str:
    """A valid session token for ``logged_in_user``."""
    return issue_token(
        user_id=logged_in_user.id,
        username=logged_in_user.username,
        secret=app.config["JWT_SECRET_KEY"],
    )


@pytest.fixture
def auth_client(client, app, session_token):
    """A test client carrying a valid session cookie."""
    client.set_cookie(app.config["AUTH_COOKIE_NAME"], session_token)
    return client


# -----------------------------------------------------------------------------
# Test Data Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def direct_task_data() -> dict[str, Any]:
    """A complete, valid Direct load creation payload."""
    return {
        "retailer": "Retailer-B",
        "day": ScheduleDay.TODAY.value,
        "loadType": LoadType.DIRECT.value,
        "fileCount": 9,
        "formats": {"xlsx": 3, "csv": 4, "txt": 1, "mail": 1},
        "instructions": "Run the extract before 9am",
        "directLoadTiming": {"istTime": "10:30", "estTime": "", "sqlQuery": "SELECT 1"},
    }


@pytest.fixture
def indirect_task_data() -> dict[str, Any]:
    """A complete, valid Indirect load creation payload fed from a portal."""
    return {
        "retailer": "Retailer-A",
        "day": ScheduleDay.WEEKDAYS.value,
        "loadType": LoadType.INDIRECT.value,
        "indirectLoadSource": "retailer portal",
        "retailerPortal": {
            "websiteLink": "https://retailerA.com",
            "username": "userA",
            "password": "passA",
        },
    }
