"""
Unit tests for session token issuing and verification.

Key SDET Concepts Demonstrated:
- Round-trip testing of issue/verify
- Negative testing for expired, tampered and foreign tokens
- Algorithm-confusion prevention (``none`` algorithm)
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from loadtracker.session import issue_token, verify_token

pytestmark = pytest.mark.unit

SECRET = "unit-test-secret-key-that-is-long-enough-0123"
OTHER_SECRET = "another-secret-key-that-is-also-long-enough-99"


def test_issue_then_verify_round_trip():
    """Test that a fresh token verifies back to the same identity."""
    # Act
    token = issue_token("u1", "alice", SECRET)

    # Assert
    assert verify_token(token, SECRET) == {"user_id": "u1", "username": "alice"}


def test_token_expires_after_seven_days():
    """Test the default validity window and the claims carried."""
    # Act
    token = issue_token("u1", "alice", SECRET)
    payload = jwt.decode(token, SECRET, algorithms=["HS256"])

    # Assert
    assert payload["exp"] - payload["iat"] == 7 * 24 * 60 * 60
    assert jwt.get_unverified_header(token)["alg"] == "HS256"


def test_expired_token_is_invalid():
    token = issue_token("u1", "alice", SECRET, expiry_days=-1)
    assert verify_token(token, SECRET) is None


def test_tampered_signature_is_invalid():
    """Test that altering the signature segment invalidates the token."""
    # Arrange
    token = issue_token("u1", "alice", SECRET)
    header, payload, signature = token.split(".")
    flipped = ("A" if signature[0] != "A" else "B") + signature[1:]

    # Act & Assert
    assert verify_token(f"{header}.{payload}.{flipped}", SECRET) is None


def test_token_signed_with_other_secret_is_invalid():
    token = issue_token("u1", "alice", OTHER_SECRET)
    assert verify_token(token, SECRET) is None


@pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c", None])
def test_garbage_tokens_are_invalid(token):
    assert verify_token(token, SECRET) is None


def test_unsigned_token_is_rejected():
    """Test that an ``alg: none`` token cannot bypass the signature check."""
    # Arrange
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {
            "user_id": "u1",
            "username": "alice",
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(hours=1)).timestamp()),
        },
        "",
        algorithm="none",
    )

    # Act & Assert
    assert verify_token(token, SECRET) is None


def test_token_missing_username_claim_is_invalid():
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"user_id": "u1", "iat": int(now.timestamp()),
         "exp": int((now + timedelta(hours=1)).timestamp())},
        SECRET,
        algorithm="HS256",
    )
    assert verify_token(token, SECRET) is None


def test_leeway_accepts_recently_expired_token():
    """Test that clock-skew leeway tolerates a token expired seconds ago."""
    # Arrange
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"user_id": "u1", "username": "alice",
         "iat": int((now - timedelta(minutes=5)).timestamp()),
         "exp": int((now - timedelta(seconds=10)).timestamp())},
        SECRET,
        algorithm="HS256",
    )

    # Act & Assert
    assert verify_token(token, SECRET, leeway=30) is not None
    assert verify_token(token, SECRET) is None


@pytest.mark.parametrize("user_id, username", [("", "alice"), ("u1", "  "), (None, "alice")])
def test_issue_rejects_blank_identity(user_id, username):
    with pytest.raises(ValueError):
        issue_token(user_id, username, SECRET)
