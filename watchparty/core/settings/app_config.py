"""Service identity and environment configuration."""

from typing import Literal

from pydantic import BaseModel


class AppConfig(BaseModel, frozen=True):
    """Name, version and runtime environment of the relay service."""

    name: str
    version: str
    env: Literal["development", "staging", "production"]
    debug: bool

    @property
    def is_development(self) -> bool:
        """Development creates tables on startup and allows any CORS origin."""
        return self.env == "development"
