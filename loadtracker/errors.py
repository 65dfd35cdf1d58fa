"""
Error taxonomy for the load tracker API.

Each error is a werkzeug ``HTTPException`` carrying its status code, so
route handlers and service helpers can simply ``raise`` and the application
level handlers in :mod:`loadtracker` turn them into ``{"error": "..."}``
JSON bodies.
"""

from __future__ import annotations

from werkzeug.exceptions import HTTPException


class ApiError(HTTPException):
    """Base class for errors that map onto a JSON error response."""

    code = 500
    description = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(description=message or self.description)


class ValidationError(ApiError):
    """Missing or malformed request fields."""

    code = 400
    description = "Bad request"


class Unauthenticated(ApiError):
    """Missing, invalid or expired session."""

    code = 401
    description = "Not authenticated"


class NotFound(ApiError):
    code = 404
    description = "Resource not found"


class Conflict(ApiError):
    code = 409
    description = "Conflict"


class Internal(ApiError):
    """Store unreachable or another unexpected server-side failure."""

    code = 500
    description = "Internal server error"


class InvalidCredentials(Unauthenticated):
    """
    Login failure.

    Raised both for an unknown username and for a wrong password so the
    response never reveals which accounts exist.
    """

    description = "Invalid username or password"


class UsernameTaken(Conflict):
    description = "Username already exists"
