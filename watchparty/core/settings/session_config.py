"""Session token configuration."""

from datetime import timedelta

from pydantic import BaseModel


class SessionConfig(BaseModel, frozen=True):
    """Opaque session token settings."""

    token_ttl_hours: int

    @property
    def token_ttl(self) -> timedelta:
        """Sliding expiry window applied on every refresh."""
        return timedelta(hours=self.token_ttl_hours)
