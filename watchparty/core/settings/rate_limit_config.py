"""HTTP rate limit configuration."""

from pydantic import BaseModel


class RateLimitConfig(BaseModel, frozen=True):
    """Per-endpoint slowapi limit strings."""

    session_create: str
    party_create: str
