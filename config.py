"""
Configuration for the retailer load tracker.

Provides environment-aware configuration classes: a shared ``Config`` base
class holds defaults, and environment-specific subclasses
(``DevelopmentConfig``, ``TestingConfig``, ``ProductionConfig``) override only
what differs.  ``get_config`` resolves the correct class at runtime from an
explicit argument or the ``FLASK_ENV`` environment variable.

The token signing secret has no built-in default.  ``load_jwt_secret`` raises
when it is missing so the application refuses to start instead of signing
sessions with a well-known value.
"""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent

# Minimum length for an HS256 secret; shorter keys are trivially brute-forced.
MIN_SECRET_LENGTH = 32


def _env_flag(name: str, default: str) -> bool:
    """Interpret an environment variable as a boolean ``"true"``/``"false"`` flag."""
    return os.environ.get(name, default).strip().lower() == "true"


def load_jwt_secret(*, testing: bool) -> str:
    """
    Resolve the HS256 signing secret for the selected environment.

    In testing mode ``TEST_JWT_SECRET_KEY`` is preferred when set; otherwise
    ``JWT_SECRET_KEY`` is used.

    Raises:
        RuntimeError: If no secret is configured or it is too short.
    """
    secret = ""
    if testing:
        secret = os.environ.get("TEST_JWT_SECRET_KEY", "").strip()
    if not secret:
        secret = os.environ.get("JWT_SECRET_KEY", "").strip()

    if not secret:
        raise RuntimeError(
            "Missing JWT secret configuration: set JWT_SECRET_KEY."
        )
    if len(secret) < MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET_KEY must be at least {MIN_SECRET_LENGTH} characters long."
        )
    return secret


class Config:
    """
    Base configuration shared by all environments.

    Every setting can be controlled via an environment variable so that
    deployments inject values without code changes.
    """

    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'instance' / 'loadtracker.db'}",
    )

    # Sessions stay valid for a week after login or registration
    JWT_EXPIRY_DAYS: int = int(os.environ.get("JWT_EXPIRY_DAYS", "7"))
    # Seconds of tolerance for clock differences when checking ``exp``
    JWT_CLOCK_SKEW_SECONDS: int = int(os.environ.get("JWT_CLOCK_SKEW_SECONDS", "30"))

    AUTH_COOKIE_NAME: str = "session"
    AUTH_COOKIE_SAMESITE: str = "Lax"
    AUTH_COOKIE_SECURE: bool = _env_flag("SESSION_COOKIE_SECURE", "false")


class DevelopmentConfig(Config):
    """Configuration for local development."""

    DEBUG: bool = True
    TESTING: bool = False


class TestingConfig(Config):
    """
    Configuration for the automated test suite.

    Uses a separate SQLite database so test runs never touch development
    data.  ``check_same_thread=False`` lets the Flask test client share the
    connection across threads.
    """

    DEBUG: bool = True
    TESTING: bool = True
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "TEST_DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'instance' / 'test_loadtracker.db'}?check_same_thread=False",
    )
    SQLALCHEMY_ENGINE_OPTIONS: dict = {"pool_pre_ping": True}


class ProductionConfig(Config):
    """
    Configuration for production deployments.

    Session cookies are marked ``Secure`` unless explicitly disabled.
    """

    DEBUG: bool = False
    TESTING: bool = False
    AUTH_COOKIE_SECURE: bool = _env_flag("SESSION_COOKIE_SECURE", "true")


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Resolve a configuration class by environment name.

    Args:
        env: One of ``"development"``, ``"testing"``, or ``"production"``.
            When ``None``, the ``FLASK_ENV`` environment variable is
            consulted, falling back to ``"development"``.

    Returns:
        The configuration class for the requested environment.  Falls back
        to ``DevelopmentConfig`` for unrecognised names.
    """
    if env is None:
        env = os.environ.get("FLASK_ENV", "development")
    return config.get(env, config["default"])
