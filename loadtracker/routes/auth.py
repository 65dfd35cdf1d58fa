"""
Authentication endpoints.

All routes live on the ``auth`` blueprint, mounted under ``/api/auth``.
Successful login and registration set the ``session`` cookie; logout clears
it.

Endpoints:
    POST /login     -- Authenticate and receive a session cookie.
    POST /register  -- Create an account and receive a session cookie.
    POST /logout    -- Clear the session cookie.
    GET  /session   -- Report the identity behind the current cookie.
"""

from __future__ import annotations

from typing import Any

from flask import Blueprint, Response, jsonify, request

from .. import session
from ..errors import Unauthenticated, ValidationError

auth_bp = Blueprint("auth", __name__)

MAX_USERNAME_LENGTH = 80


def _validate_required_fields(
    data: dict[str, Any], required_fields: list[str]
) -> str | None:
    """
    Check that every field in *required_fields* is a non-blank string.

    Returns:
        An error message for the first missing or blank field, or ``None``.
    """
    for field in required_fields:
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            return f"'{field}' is required"
    return None


def _credentials() -> tuple[str, str]:
    """
    Pull ``username`` and ``password`` out of the JSON body or raise 400.

    The username is used exactly as sent; surrounding whitespace is part of it.
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    missing = _validate_required_fields(data, ["username", "password"])
    if missing:
        raise ValidationError(missing)
    return data["username"], data["password"]


@auth_bp.route("/login", methods=["POST"])
def login() -> Response:
    """
    Authenticate a user.

    Returns:
        200 with ``user`` and the session cookie on success.
        400 if a field is missing.
        401 with a generic message if the credentials are wrong.
    """
    username, password = _credentials()
    user, token = session.login(username, password)
    response = jsonify({"success": True, "user": user.to_dict()})
    return session.set_session_cookie(response, token)


@auth_bp.route("/register", methods=["POST"])
def register() -> Response:
    """
    Register a new user and log them in.

    Returns:
        200 with ``user`` and the session cookie on success.
        400 if a field is missing or the username is too long.
        409 if the username is already taken.
    """
    username, password = _credentials()
    if len(username) > MAX_USERNAME_LENGTH:
        raise ValidationError(
            f"username must be {MAX_USERNAME_LENGTH} characters or less"
        )

    user, token = session.register(username, password)
    response = jsonify({"success": True, "user": user.to_dict()})
    return session.set_session_cookie(response, token)


@auth_bp.route("/logout", methods=["POST"])
def logout() -> Response:
    """Clear the session cookie.  Always succeeds."""
    return session.logout(jsonify({"success": True}))


@auth_bp.route("/session", methods=["GET"])
def current_session() -> Response:
    """
    Return the user behind the session cookie.

    Returns:
        200 with ``authenticated`` and ``user`` for a valid session.
        401 for a missing, invalid or expired one.
    """
    identity = session.current_identity()
    if identity is None:
        raise Unauthenticated()

    return jsonify(
        {
            "authenticated": True,
            "user": {"id": identity["user_id"], "username": identity["username"]},
        }
    )
