"""
Database models for the retailer load tracker.

Defines the SQLAlchemy ORM models backing the application: :class:`User`
holds login credentials, :class:`Task` describes one retailer's file-load
job.  Structured task data (file format counts, load-type payloads, file
name mappings) is stored in JSON columns and serialised with the camelCase
keys the API exposes.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from werkzeug.security import check_password_hash, generate_password_hash

from . import db


class LoadType(str, Enum):
    """How a retailer's files reach us."""

    DIRECT = "Direct load"
    INDIRECT = "Indirect load"


class IndirectSource(str, Enum):
    """Where files for an indirect load are collected from."""

    PORTAL = "retailer portal"
    MAIL = "retailer mail"


class ScheduleDay(str, Enum):
    """Schedule labels a task can be filed under."""

    TODAY = "Today's load"
    WEEKDAYS = "Mon - Fri"
    EVERY_DAY = "Mon - Sun"
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


DEFAULT_FILE_COUNT = 9


def default_formats() -> dict[str, int]:
    """Return the usual per-format file counts for a new task."""
    return {"xlsx": 3, "csv": 4, "txt": 1, "mail": 1}


def _to_utc_iso(value: datetime | None) -> str | None:
    """
    Serialize a datetime to an ISO-8601 UTC string.

    SQLite returns naive datetimes even for timezone-aware columns, so naive
    values are assumed to be UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.isoformat()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(db.Model):
    """
    A registered user.

    Passwords are never stored in plain text; ``to_dict`` omits the hash so
    it can be returned in API responses.

    Attributes:
        id: Random hex identifier assigned at creation.
        username: Unique, case-sensitive login name (max 80 chars).
        password_hash: Werkzeug-generated salted hash.
        created_at: Account creation time, stored as UTC.
    """

    __tablename__ = "users"

    __table_args__ = (
        db.CheckConstraint("length(username) <= 80", name="ck_users_username_len"),
    )

    id: str = db.Column(
        db.String(32), primary_key=True, default=lambda: uuid.uuid4().hex
    )
    # Every login looks a user up by username
    username: str = db.Column(db.String(80), unique=True, nullable=False, index=True)
    password_hash: str = db.Column(db.String(256), nullable=False)
    created_at: datetime = db.Column(
        db.DateTime(timezone=True), nullable=False, default=_utcnow
    )

    def set_password(self, password: str) -> None:
        """Hash and store a plain-text password (salted, cost-factored scrypt by default)."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Verify *password* against the stored hash in constant time."""
        return check_password_hash(self.password_hash, password)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "createdAt": _to_utc_iso(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.username}>"


class Task(db.Model):
    """
    A retailer file-load task.

    Exactly one of the load-type payloads is populated: ``direct_load_timing``
    for direct loads, or ``indirect_load_source`` with either
    ``retailer_portal`` or ``retailer_mail`` for indirect loads.

    Attributes:
        retailer: Retailer display name, searched by substring.
        day: Schedule label, one of :class:`ScheduleDay`.
        load_type: One of :class:`LoadType`.
        file_count: Total number of files uploaded for the retailer.
        formats: Mapping of file format to number of files.
        files: Ordered ``{"downloadName", "requiredName"}`` pairs.
        completed: Whether today's load has been done.
    """

    __tablename__ = "tasks"

    id: int = db.Column(db.Integer, primary_key=True)
    retailer: str = db.Column(db.String(200), nullable=False, index=True)
    day: str = db.Column(db.String(40), nullable=False, index=True)
    load_type: str = db.Column(
        db.String(20), nullable=False, default=LoadType.DIRECT.value
    )
    file_count: int = db.Column(db.Integer, nullable=False, default=DEFAULT_FILE_COUNT)
    formats: dict = db.Column(db.JSON, nullable=False, default=default_formats)

    instructions: str | None = db.Column(db.Text, nullable=True)
    kt_recording_link: str | None = db.Column(db.String(500), nullable=True)
    documentation_link: str | None = db.Column(db.String(500), nullable=True)

    # Legacy single-credential fields kept for older tasks
    link: str | None = db.Column(db.String(500), nullable=True)
    username: str | None = db.Column(db.String(200), nullable=True)
    password: str | None = db.Column(db.String(200), nullable=True)

    direct_load_timing: dict | None = db.Column(db.JSON, nullable=True)
    indirect_load_source: str | None = db.Column(db.String(20), nullable=True)
    retailer_portal: dict | None = db.Column(db.JSON, nullable=True)
    retailer_mail: dict | None = db.Column(db.JSON, nullable=True)

    files: list = db.Column(db.JSON, nullable=False, default=list)
    completed: bool = db.Column(db.Boolean, nullable=False, default=False)

    created_at: datetime = db.Column(
        db.DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: datetime = db.Column(
        db.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    def set_direct_load(self, timing: dict[str, str]) -> None:
        """Switch the task to a direct load and drop any indirect payload."""
        self.load_type = LoadType.DIRECT.value
        self.direct_load_timing = timing
        self.indirect_load_source = None
        self.retailer_portal = None
        self.retailer_mail = None

    def set_indirect_load(self, source: str, details: dict[str, str]) -> None:
        """Switch the task to an indirect load fed from *source*."""
        self.load_type = LoadType.INDIRECT.value
        self.direct_load_timing = None
        self.indirect_load_source = source
        if source == IndirectSource.PORTAL.value:
            self.retailer_portal = details
            self.retailer_mail = None
        else:
            self.retailer_portal = None
            self.retailer_mail = details

    def to_dict(self) -> dict[str, Any]:
        """Return the task in its JSON wire form."""
        data: dict[str, Any] = {
            "id": self.id,
            "retailer": self.retailer,
            "day": self.day,
            "loadType": self.load_type,
            "fileCount": self.file_count,
            "formats": dict(self.formats or {}),
            "instructions": self.instructions,
            "ktRecordingLink": self.kt_recording_link,
            "documentationLink": self.documentation_link,
            "link": self.link,
            "username": self.username,
            "password": self.password,
            "files": list(self.files or []),
            "completed": bool(self.completed),
            "createdAt": _to_utc_iso(self.created_at),
            "updatedAt": _to_utc_iso(self.updated_at),
        }
        if self.load_type == LoadType.DIRECT.value:
            data["directLoadTiming"] = self.direct_load_timing
        else:
            data["indirectLoadSource"] = self.indirect_load_source
            if self.indirect_load_source == IndirectSource.PORTAL.value:
                data["retailerPortal"] = self.retailer_portal
            else:
                data["retailerMail"] = self.retailer_mail
        return data

    def __repr__(self) -> str:
        return f"<Task {self.id}: {self.retailer}>"
