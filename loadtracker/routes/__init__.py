"""
Route blueprints for the load tracker.

- auth: login, registration, logout and session lookup
- api: task listing, creation and updates, plus the health check
"""
