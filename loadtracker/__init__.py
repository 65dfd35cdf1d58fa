"""
Flask application factory for the retailer load tracker.

``create_app`` wires configuration, the SQLAlchemy extension, the auth and
task blueprints, the JSON error handlers and the CLI commands together, so
the WSGI server, the test suite and the ``flask`` CLI all get the same
application for a given configuration name.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from flask import Flask, Response, jsonify
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from config import get_config, load_jwt_secret

from .errors import Internal

db = SQLAlchemy()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _ensure_sqlite_db_parent_exists(database_uri: str) -> None:
    """Create parent directories for file-based SQLite URIs when missing."""
    sqlite_prefix = "sqlite:///"
    if not database_uri.startswith(sqlite_prefix):
        return

    sqlite_path = database_uri[len(sqlite_prefix) :].split("?", 1)[0]
    if sqlite_path == ":memory:":
        return

    Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)


def _register_error_handlers(app: Flask) -> None:
    """Render every failure as a ``{"error": "..."}`` JSON body."""

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException) -> tuple[Response, int]:
        return jsonify({"error": error.description}), error.code or 500

    @app.errorhandler(SQLAlchemyError)
    def handle_store_error(error: SQLAlchemyError) -> tuple[Response, int]:
        db.session.rollback()
        logger.error("Database error: %s", error)
        return handle_http_error(Internal())

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception) -> tuple[Response, int]:
        db.session.rollback()
        logger.exception("Unhandled error: %s", error)
        return handle_http_error(Internal())


def create_app(config_name: str | None = None) -> Flask:
    """
    Create and configure the load tracker application.

    Args:
        config_name: ``"development"``, ``"testing"`` or ``"production"``.
            When ``None``, resolved from ``FLASK_ENV``.

    Returns:
        A configured Flask application with its tables created.

    Raises:
        RuntimeError: If the JWT signing secret is not configured.
    """
    app = Flask(__name__, instance_relative_config=True)
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    app.config["JWT_SECRET_KEY"] = load_jwt_secret(testing=bool(app.config.get("TESTING")))

    logger.info("Creating load tracker app with config: %s", config_class.__name__)

    os.makedirs(app.instance_path, exist_ok=True)
    _ensure_sqlite_db_parent_exists(app.config.get("SQLALCHEMY_DATABASE_URI", ""))

    db.init_app(app)

    # Imported here because the blueprints import ``db`` from this package
    from .cli import register_commands
    from .routes.api import api_bp
    from .routes.auth import auth_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(api_bp, url_prefix="/api")
    _register_error_handlers(app)
    register_commands(app)

    with app.app_context():
        db.create_all()
        logger.info("Database tables created")

    return app
