"""
Flask CLI commands for database setup.

Usage::

    flask --app wsgi init-db    # create tables and report row counts
    flask --app wsgi seed-db    # replace all tasks with the sample set
"""

from __future__ import annotations

import click
from flask import Flask
from sqlalchemy import delete, func, select

from . import db
from .models import IndirectSource, LoadType, ScheduleDay, Task, User, default_formats

SAMPLE_TASKS = [
    {
        "retailer": "Retailer-A",
        "day": ScheduleDay.TODAY.value,
        "load_type": LoadType.INDIRECT.value,
        "link": "https://retailerA.com",
        "source": IndirectSource.PORTAL.value,
        "details": {"websiteLink": "https://retailerA.com", "username": "userA", "password": "passA"},
        "files": [
            {"downloadName": "abcd.xlsx", "requiredName": "pqrs_20250917.csv"},
            {"downloadName": "data.csv", "requiredName": "retailer_a_20250917.csv"},
            {"downloadName": "report.txt", "requiredName": "report_final.txt"},
        ],
        "completed": False,
    },
    {
        "retailer": "Retailer-B",
        "day": ScheduleDay.TODAY.value,
        "load_type": LoadType.DIRECT.value,
        "link": "https://retailerB.com",
        "timing": {"istTime": "10:30", "estTime": "00:00", "sqlQuery": ""},
        "files": [],
        "completed": False,
    },
    {
        "retailer": "Retailer-C",
        "day": ScheduleDay.MONDAY.value,
        "load_type": LoadType.DIRECT.value,
        "link": "https://retailerC.com",
        "timing": {"istTime": "00:00", "estTime": "13:30", "sqlQuery": ""},
        "files": [],
        "completed": True,
    },
    {
        "retailer": "Retailer-D",
        "day": ScheduleDay.TUESDAY.value,
        "load_type": LoadType.INDIRECT.value,
        "link": "https://retailerD.com",
        "source": IndirectSource.MAIL.value,
        "details": {"mailFolder": "Retailer-D", "mailId": "reports@retailerD.com"},
        "files": [],
        "completed": False,
    },
    {
        "retailer": "Retailer-E",
        "day": ScheduleDay.WEDNESDAY.value,
        "load_type": LoadType.DIRECT.value,
        "link": "https://retailerE.com",
        "timing": {"istTime": "18:00", "estTime": "07:30", "sqlQuery": ""},
        "files": [],
        "completed": False,
    },
]


def build_sample_tasks() -> list[Task]:
    """Return unsaved :class:`Task` rows for the sample retailers."""
    tasks = []
    for sample in SAMPLE_TASKS:
        task = Task(
            retailer=sample["retailer"],
            day=sample["day"],
            file_count=9,
            formats=default_formats(),
            link=sample["link"],
            files=list(sample["files"]),
            completed=sample["completed"],
        )
        if sample["load_type"] == LoadType.DIRECT.value:
            task.set_direct_load(dict(sample["timing"]))
        else:
            task.set_indirect_load(sample["source"], dict(sample["details"]))
        tasks.append(task)
    return tasks


def register_commands(app: Flask) -> None:
    """Attach the database commands to *app*'s CLI group."""

    @app.cli.command("init-db")
    def init_db() -> None:
        """Create missing tables and report what the database holds."""
        db.create_all()
        user_count = db.session.scalar(select(func.count()).select_from(User))
        task_count = db.session.scalar(select(func.count()).select_from(Task))
        click.echo(f"Found {user_count} users and {task_count} tasks")
        click.echo("Database is ready")

    @app.cli.command("seed-db")
    def seed_db() -> None:
        """Delete every task and insert the sample retailer tasks."""
        db.session.execute(delete(Task))
        tasks = build_sample_tasks()
        db.session.add_all(tasks)
        db.session.commit()
        click.echo(f"Inserted {len(tasks)} tasks")
