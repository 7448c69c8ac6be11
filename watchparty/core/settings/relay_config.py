"""Real-time relay configuration."""

from pydantic import BaseModel


class RelayConfig(BaseModel, frozen=True):
    """Relay engine settings."""

    presence_refresh_delay_seconds: float
    system_username: str
    party_system_username: str
    avatar_base_url: str
