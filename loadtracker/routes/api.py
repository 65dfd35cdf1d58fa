"""
REST API endpoints for retailer load tasks.

Every task endpoint requires a session (see
:func:`loadtracker.session.require_session`).  Tasks are shared by all
signed-in users: the team works one common board.

Endpoints:
    GET  /api/health           - Service health check (public)
    GET  /api/tasks            - List tasks (search, day, load type, status, sort)
    GET  /api/tasks/<id>       - Retrieve a single task
    POST /api/tasks            - Create a task
    PUT  /api/tasks/<id>       - Partially update a task (files, completion, ...)
"""

from __future__ import annotations

import logging
import os
from typing import Any

from flask import Blueprint, Response, g, jsonify, request
from sqlalchemy import select

from .. import db
from ..errors import NotFound, ValidationError
from ..models import (
    DEFAULT_FILE_COUNT,
    IndirectSource,
    LoadType,
    ScheduleDay,
    Task,
    default_formats,
)
from ..session import require_session
from ..task_query import ALL, SORT_FIELDS, SORT_ORDERS, STATUS_FILTERS, view
from ..timezones import ist_to_est, parse_time

logger = logging.getLogger(__name__)

api_bp = Blueprint("task_api", __name__)

TEXT_FIELDS = {
    "instructions": "instructions",
    "ktRecordingLink": "kt_recording_link",
    "documentationLink": "documentation_link",
    "link": "link",
    "username": "username",
    "password": "password",
}
LOAD_PAYLOAD_FIELDS = (
    "loadType",
    "directLoadTiming",
    "indirectLoadSource",
    "retailerPortal",
    "retailerMail",
)
PORTAL_FIELDS = ("websiteLink", "username", "password")
MAIL_FIELDS = ("mailFolder", "mailId")


# =====================================================================
# Helper Functions
# =====================================================================


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _string_mapping_error(name: str, value: Any, fields: tuple[str, ...]) -> str | None:
    if not isinstance(value, dict):
        return f"'{name}' must be an object"
    for field in fields:
        if value.get(field) is not None and not isinstance(value[field], str):
            return f"'{name}.{field}' must be a string"
    return None


def validate_files(files: Any) -> tuple[bool, str | None]:
    """
    Validate a task's file name mappings.

    Every entry must carry a non-blank ``downloadName`` and ``requiredName``.

    Returns:
        ``(is_valid, error_message)``.
    """
    if not isinstance(files, list):
        return False, "'files' must be a list"

    for index, entry in enumerate(files):
        if not isinstance(entry, dict):
            return False, f"files[{index}] must be an object"
        for field in ("downloadName", "requiredName"):
            value = entry.get(field)
            if not isinstance(value, str) or not value.strip():
                return False, f"files[{index}].{field} is required"
    return True, None


def validate_task_data(
    data: dict, required_fields: list[str] | None = None
) -> tuple[bool, str | None]:
    """
    Validate an incoming task payload.

    Checks required fields, the schedule and load-type enumerations, counts,
    file mappings and the shape of the load-type payloads.

    Returns:
        ``(is_valid, error_message)``; the message is ``None`` when valid.
    """
    if required_fields:
        for field in required_fields:
            value = data.get(field)
            if not value or (isinstance(value, str) and not value.strip()):
                return False, f"'{field}' is required"

    if "retailer" in data:
        if not isinstance(data["retailer"], str) or not data["retailer"].strip():
            return False, "'retailer' is required"
        if len(data["retailer"]) > 200:
            return False, "Retailer must be 200 characters or less"

    if "day" in data:
        valid_days = [d.value for d in ScheduleDay]
        if data["day"] not in valid_days:
            return False, f"Invalid day. Must be one of: {valid_days}"

    if "loadType" in data:
        valid_load_types = [t.value for t in LoadType]
        if data["loadType"] not in valid_load_types:
            return False, f"Invalid loadType. Must be one of: {valid_load_types}"

    if "fileCount" in data and not _is_count(data["fileCount"]):
        return False, "fileCount must be a non-negative integer"

    if "formats" in data:
        formats = data["formats"]
        if not isinstance(formats, dict) or not all(
            isinstance(name, str) and _is_count(count) for name, count in formats.items()
        ):
            return False, "formats must map format names to non-negative integers"

    if "completed" in data and not isinstance(data["completed"], bool):
        return False, "completed must be a boolean"

    for field in TEXT_FIELDS:
        if data.get(field) is not None and not isinstance(data[field], str):
            return False, f"'{field}' must be a string"

    if "files" in data:
        is_valid, error = validate_files(data["files"])
        if not is_valid:
            return False, error

    if data.get("directLoadTiming") is not None:
        timing = data["directLoadTiming"]
        error = _string_mapping_error(
            "directLoadTiming", timing, ("istTime", "estTime", "sqlQuery")
        )
        if error:
            return False, error
        for field in ("istTime", "estTime"):
            if timing.get(field):
                try:
                    parse_time(timing[field])
                except ValueError as exc:
                    return False, f"directLoadTiming.{field}: {exc}"

    if data.get("indirectLoadSource") is not None:
        valid_sources = [s.value for s in IndirectSource]
        if data["indirectLoadSource"] not in valid_sources:
            return False, f"Invalid indirectLoadSource. Must be one of: {valid_sources}"

    if data.get("retailerPortal") is not None:
        error = _string_mapping_error("retailerPortal", data["retailerPortal"], PORTAL_FIELDS)
        if error:
            return False, error

    if data.get("retailerMail") is not None:
        error = _string_mapping_error("retailerMail", data["retailerMail"], MAIL_FIELDS)
        if error:
            return False, error

    return True, None


def _pick(source: dict | None, fields: tuple[str, ...]) -> dict[str, str]:
    source = source or {}
    return {field: source.get(field) or "" for field in fields}


def _apply_load_payload(task: Task, data: dict) -> None:
    """
    Set the load-type payload of *task* from *data*.

    The EST time of a direct load is always derived from its IST time.
    """
    load_type = data.get("loadType", task.load_type)
    if load_type == LoadType.DIRECT.value:
        timing = _pick(
            data.get("directLoadTiming", task.direct_load_timing),
            ("istTime", "estTime", "sqlQuery"),
        )
        if timing["istTime"]:
            timing["estTime"] = ist_to_est(timing["istTime"])
        task.set_direct_load(timing)
        return

    source = (
        data.get("indirectLoadSource")
        or task.indirect_load_source
        or IndirectSource.PORTAL.value
    )
    if source == IndirectSource.PORTAL.value:
        details = _pick(data.get("retailerPortal", task.retailer_portal), PORTAL_FIELDS)
    else:
        details = _pick(data.get("retailerMail", task.retailer_mail), MAIL_FIELDS)
    task.set_indirect_load(source, details)


def _load_payload_mismatch(load_type: str, data: dict) -> str | None:
    """Name a payload in *data* that belongs to the other load type, if any."""
    if load_type == LoadType.DIRECT.value:
        foreign = ("indirectLoadSource", "retailerPortal", "retailerMail")
    else:
        foreign = ("directLoadTiming",)
    for field in foreign:
        if data.get(field) is not None:
            return f"'{field}' does not apply to a task with loadType '{load_type}'"
    return None


def _apply_fields(task: Task, data: dict) -> None:
    if "retailer" in data:
        task.retailer = data["retailer"].strip()
    if "day" in data:
        task.day = data["day"]
    if "fileCount" in data:
        task.file_count = data["fileCount"]
    if "formats" in data:
        task.formats = dict(data["formats"])
    if "completed" in data:
        task.completed = data["completed"]
    if "files" in data:
        task.files = [
            {"downloadName": f["downloadName"], "requiredName": f["requiredName"]}
            for f in data["files"]
        ]
    for field, attribute in TEXT_FIELDS.items():
        if field in data:
            setattr(task, attribute, data[field])


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        raise ValidationError("Request body must be JSON")
    return data


def _get_task_or_404(task_id: int) -> Task:
    task = db.session.get(Task, task_id)
    if task is None:
        raise NotFound("Task not found")
    return task


def _listing_options() -> dict[str, str]:
    """Read and validate the client-side listing options from the query string."""
    options = {
        "loadTypeFilter": request.args.get("loadType", ALL) or ALL,
        "statusFilter": request.args.get("status", ALL) or ALL,
        "sortBy": request.args.get("sortBy", "retailer") or "retailer",
        "sortOrder": request.args.get("sortOrder", "asc") or "asc",
    }

    valid_load_types = [ALL] + [t.value for t in LoadType]
    if options["loadTypeFilter"] not in valid_load_types:
        raise ValidationError(f"Invalid loadType. Must be one of: {valid_load_types}")
    if options["statusFilter"] not in STATUS_FILTERS:
        raise ValidationError(f"Invalid status. Must be one of: {list(STATUS_FILTERS)}")
    if options["sortBy"] not in SORT_FIELDS:
        raise ValidationError(f"Invalid sortBy. Must be one of: {list(SORT_FIELDS)}")
    if options["sortOrder"] not in SORT_ORDERS:
        raise ValidationError(f"Invalid sortOrder. Must be one of: {list(SORT_ORDERS)}")
    return options


# =====================================================================
# API Endpoints
# =====================================================================


@api_bp.route("/health", methods=["GET"])
def health_check() -> tuple[Response, int]:
    """Public liveness probe."""
    return (
        jsonify(
            {
                "status": "healthy",
                "service": "loadtracker",
                "environment": os.getenv("ENVIRONMENT", "unknown"),
            }
        ),
        200,
    )


@api_bp.route("/tasks", methods=["GET"])
@require_session
def get_tasks() -> Response:
    """
    List tasks as a JSON array.

    Query Parameters:
        search: Case-insensitive substring of the retailer name.
        day: Exact schedule label, or ``all``.
        loadType: ``all``, ``Direct load`` or ``Indirect load``.
        status: ``all``, ``completed`` or ``pending``.
        sortBy: ``retailer``, ``day``, ``fileCount`` or ``updatedAt``.
        sortOrder: ``asc`` or ``desc``.
    """
    options = _listing_options()
    logger.info("GET /api/tasks - Fetching tasks for user_id=%s", g.user_id)

    stmt = select(Task).order_by(Task.id)

    search = request.args.get("search", "").strip()
    if search:
        stmt = stmt.where(Task.retailer.icontains(search, autoescape=True))

    day = request.args.get("day", "").strip()
    if day and day != ALL:
        stmt = stmt.where(Task.day == day)

    tasks = [task.to_dict() for task in db.session.scalars(stmt).all()]
    return jsonify(view(tasks, options))


@api_bp.route("/tasks/<int:task_id>", methods=["GET"])
@require_session
def get_task(task_id: int) -> Response:
    return jsonify(_get_task_or_404(task_id).to_dict())


@api_bp.route("/tasks", methods=["POST"])
@require_session
def create_task() -> Response:
    """
    Create a task.

    Requires ``retailer``, ``day`` and ``loadType``.  Only the payload that
    matches ``loadType`` is stored.

    Returns:
        ``{"task": {...}}`` with status 200.
    """
    data = _json_body()
    is_valid, error = validate_task_data(data, required_fields=["retailer", "day", "loadType"])
    if not is_valid:
        raise ValidationError(error)

    task = Task(
        file_count=DEFAULT_FILE_COUNT,
        formats=default_formats(),
        files=[],
        completed=False,
    )
    _apply_fields(task, data)
    _apply_load_payload(task, data)

    db.session.add(task)
    db.session.commit()
    logger.info("User %s created task %s for %s", g.user_id, task.id, task.retailer)
    return jsonify({"task": task.to_dict()})


@api_bp.route("/tasks/<int:task_id>", methods=["PUT"])
@require_session
def update_task(task_id: int) -> Response:
    """
    Partially update a task.

    Only the fields present in the body change.  The whole body is
    validated before the task is touched, and the changes are committed
    together, so a rejected or failed update leaves the task as it was.

    Returns:
        ``{"task": {...}}``, 400 for invalid data, 404 for an unknown id.
    """
    task = _get_task_or_404(task_id)
    data = _json_body()

    is_valid, error = validate_task_data(data)
    if not is_valid:
        raise ValidationError(error)
    mismatch = _load_payload_mismatch(data.get("loadType", task.load_type), data)
    if mismatch:
        raise ValidationError(mismatch)

    _apply_fields(task, data)
    if any(field in data for field in LOAD_PAYLOAD_FIELDS):
        _apply_load_payload(task, data)

    db.session.commit()
    logger.info("User %s updated task %s", g.user_id, task.id)
    return jsonify({"task": task.to_dict()})
