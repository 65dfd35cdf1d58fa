"""
Integration test package for the load tracker.

Tests use the Flask test client and cover:
- Authentication flows and the session cookie
- Task listing, creation and partial updates
- Database CLI commands
"""
