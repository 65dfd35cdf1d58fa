"""
Test suite for the retailer load tracker.

This package contains:
- unit/: Pure-function and model tests (offset conversion, task listing, tokens)
- integration/: HTTP tests through the Flask test client, plus CLI commands
- security/: Session cookie and secret configuration checks
"""
