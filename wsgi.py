"""WSGI entry point for the load tracker."""

import os

from loadtracker import create_app

app = create_app(os.getenv("FLASK_ENV", "production"))
