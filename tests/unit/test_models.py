"""
Unit tests for the User and Task models.
"""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from loadtracker.models import LoadType, Task, User

pytestmark = pytest.mark.unit


def test_set_password_hashes_plain_text(db_session):
    user = User(username="alice")
    user.set_password("Secret123!")

    assert user.password_hash != "Secret123!"
    assert user.check_password("Secret123!")
    assert user.check_password("wrong") is False


def test_user_to_dict_excludes_password_hash(db_session, user_factory):
    # Arrange
    user = user_factory(username="carol")

    # Act
    payload = user.to_dict()

    # Assert
    assert payload["username"] == "carol"
    assert isinstance(payload["id"], str) and payload["id"]
    assert payload["createdAt"] is not None
    assert "password_hash" not in payload


def test_unique_username_constraint(db_session, user_factory):
    # Arrange
    user_factory(username="dupe")
    duplicate = User(username="dupe")
    duplicate.set_password("Secret123!")
    db_session.session.add(duplicate)

    # Act & Assert
    with pytest.raises(IntegrityError):
        db_session.session.commit()
    db_session.session.rollback()


def test_usernames_are_case_sensitive(db_session, user_factory):
    user_factory(username="Alice")
    user_factory(username="alice")

    assert db_session.session.query(User).count() == 2


def test_task_defaults_and_to_dict(db_session):
    # Arrange
    task = Task(retailer="Retailer-A", day="Monday")
    task.set_direct_load({"istTime": "10:30", "estTime": "00:00", "sqlQuery": ""})
    db_session.session.add(task)
    db_session.session.commit()

    # Act
    data = task.to_dict()

    # Assert
    assert data["retailer"] == "Retailer-A"
    assert data["loadType"] == LoadType.DIRECT.value
    assert data["fileCount"] == 9
    assert data["formats"] == {"xlsx": 3, "csv": 4, "txt": 1, "mail": 1}
    assert data["files"] == []
    assert data["completed"] is False
    assert data["directLoadTiming"]["estTime"] == "00:00"
    assert "retailerPortal" not in data
    assert data["createdAt"] is not None
    assert data["updatedAt"] is not None


def test_switching_load_type_clears_other_payload(db_session):
    """Test that a task never carries both load-type payloads."""
    # Arrange
    task = Task(retailer="Retailer-D", day="Tuesday")
    task.set_direct_load({"istTime": "09:00", "estTime": "22:30", "sqlQuery": ""})

    # Act
    task.set_indirect_load("retailer mail", {"mailFolder": "D", "mailId": "d@example.com"})
    db_session.session.add(task)
    db_session.session.commit()
    data = task.to_dict()

    # Assert
    assert task.direct_load_timing is None
    assert task.retailer_portal is None
    assert data["indirectLoadSource"] == "retailer mail"
    assert data["retailerMail"] == {"mailFolder": "D", "mailId": "d@example.com"}
    assert "directLoadTiming" not in data
