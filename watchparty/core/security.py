"""Opaque token generation."""

import secrets

SESSION_TOKEN_BYTES = 32
ROOM_TOKEN_BYTES = 12
ROOM_TOKEN_PREFIX = "party-"


def generate_session_token() -> str:
    """Return an unpredictable URL-safe session token."""
    return secrets.token_urlsafe(SESSION_TOKEN_BYTES)


def generate_room_token() -> str:
    """Return a fresh room token. Room tokens are never reused."""
    return f"{ROOM_TOKEN_PREFIX}{secrets.token_urlsafe(ROOM_TOKEN_BYTES)}"
