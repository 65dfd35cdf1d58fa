"""
Session management: token issuing, verification and the auth flows.

Sessions are stateless.  A session is an HS256-signed JWT carrying the
user's id and username plus ``iat``/``exp`` claims; it travels in an
HttpOnly ``session`` cookie (a ``Bearer`` Authorization header is accepted
as well).  Nothing is stored server-side, so logging out only tells the
client to drop the cookie, and an expired token is noticed the next time it
is verified.

Token structure (claims):
    - ``user_id``  -- the user's string identifier.
    - ``username`` -- login name, carried so handlers need no DB round-trip.
    - ``iat``      -- issued-at, UTC epoch seconds.
    - ``exp``      -- expiry, UTC epoch seconds.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Any

import jwt
from flask import Response, current_app, g, request
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from . import db
from .errors import InvalidCredentials, Unauthenticated, UsernameTaken
from .models import User

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
REQUIRED_TOKEN_CLAIMS = ["user_id", "username", "iat", "exp"]
DEFAULT_EXPIRY_DAYS = 7


# =====================================================================
# Tokens
# =====================================================================


def issue_token(
    user_id: str,
    username: str,
    secret: str,
    expiry_days: int = DEFAULT_EXPIRY_DAYS,
) -> str:
    """
    Create an HS256-signed session token.

    Args:
        user_id: Identifier of the authenticated user.
        username: Login name of the user.
        secret: Symmetric signing secret.
        expiry_days: Days from now until the token expires.

    Returns:
        A compact JWS string (``header.payload.signature``).

    Raises:
        ValueError: If *user_id* or *username* is blank.
    """
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValueError("user_id must be a non-empty string")
    if not isinstance(username, str) or not username.strip():
        raise ValueError("username must be a non-empty string")

    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(days=int(expiry_days))
    payload: dict[str, Any] = {
        "user_id": user_id,
        "username": username,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def verify_token(token: str, secret: str, leeway: int = 0) -> dict[str, str] | None:
    """
    Check a session token and return the identity it carries.

    Verifies the signature, expiry and presence of every required claim,
    then checks that the identity claims are non-blank strings.

    Returns:
        ``{"user_id": ..., "username": ...}`` for a valid token, or ``None``
        for anything else (bad signature, expired, malformed, wrong
        algorithm, missing claims).  Never raises.
    """
    if not isinstance(token, str) or not token:
        return None
    try:
        decoded = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options={"require": REQUIRED_TOKEN_CLAIMS},
            leeway=leeway,
        )
    except jwt.InvalidTokenError:
        return None

    user_id = decoded.get("user_id")
    username = decoded.get("username")
    if not isinstance(user_id, str) or not user_id.strip():
        return None
    if not isinstance(username, str) or not username.strip():
        return None
    return {"user_id": user_id, "username": username}


def issue_for(user: User) -> str:
    """Issue a token for *user* using the application's configuration."""
    return issue_token(
        user_id=user.id,
        username=user.username,
        secret=current_app.config["JWT_SECRET_KEY"],
        expiry_days=current_app.config["JWT_EXPIRY_DAYS"],
    )


# =====================================================================
# Auth flows
# =====================================================================


def login(username: str, password: str) -> tuple[User, str]:
    """
    Authenticate *username* and issue a session token.

    Raises:
        InvalidCredentials: For an unknown user or a wrong password alike.
    """
    user = db.session.scalar(select(User).where(User.username == username))
    if user is None or not user.check_password(password):
        logger.warning("Rejected login for username=%r", username)
        raise InvalidCredentials()

    logger.info("User %s logged in", user.id)
    return user, issue_for(user)


def register(username: str, password: str) -> tuple[User, str]:
    """
    Create an account and log it in.

    Raises:
        UsernameTaken: If the username is already registered.
    """
    existing = db.session.scalar(select(User).where(User.username == username))
    if existing is not None:
        raise UsernameTaken()

    user = User(username=username)
    user.set_password(password)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same name
        db.session.rollback()
        raise UsernameTaken() from None

    logger.info("Registered user %s (%s)", user.id, user.username)
    return user, issue_for(user)


# =====================================================================
# Cookie transport
# =====================================================================


def set_session_cookie(response: Response, token: str) -> Response:
    """Attach the session cookie, valid for as long as the token."""
    response.set_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        token,
        max_age=int(timedelta(days=current_app.config["JWT_EXPIRY_DAYS"]).total_seconds()),
        httponly=True,
        secure=current_app.config["AUTH_COOKIE_SECURE"],
        samesite=current_app.config["AUTH_COOKIE_SAMESITE"],
    )
    return response


def logout(response: Response) -> Response:
    """Tell the client to discard its session cookie."""
    response.set_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        "",
        max_age=0,
        httponly=True,
        secure=current_app.config["AUTH_COOKIE_SECURE"],
        samesite=current_app.config["AUTH_COOKIE_SAMESITE"],
    )
    return response


def _request_token() -> str | None:
    """Return the session token from the cookie, else from a Bearer header."""
    token = request.cookies.get(current_app.config["AUTH_COOKIE_NAME"])
    if token:
        return token

    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def current_identity() -> dict[str, str] | None:
    """Verify the current request's session, returning its identity or ``None``."""
    token = _request_token()
    if token is None:
        return None
    return verify_token(
        token,
        current_app.config["JWT_SECRET_KEY"],
        leeway=int(current_app.config.get("JWT_CLOCK_SKEW_SECONDS", 30)),
    )


def require_session(view_func: Callable[..., Any]):
    """
    Decorator that only runs *view_func* for an authenticated request.

    On success the identity is stored on ``flask.g`` as ``g.user_id`` and
    ``g.username``.  Otherwise ``Unauthenticated`` is raised and rendered as
    a 401 JSON error.
    """

    @wraps(view_func)
    def wrapper(*args, **kwargs):
        identity = current_identity()
        if identity is None:
            raise Unauthenticated("Invalid or expired session")

        g.user_id = identity["user_id"]
        g.username = identity["username"]
        return view_func(*args, **kwargs)

    return wrapper
