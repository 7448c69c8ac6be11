"""Database connection configuration."""

from typing import Any

from pydantic import BaseModel, SecretStr


class DatabaseConfig(BaseModel, frozen=True):
    """Database connection settings."""

    url: SecretStr

    @property
    def is_sqlite(self) -> bool:
        """SQLite URLs get no pool sizing and no charset suffix."""
        return self.url.get_secret_value().startswith("sqlite")

    @property
    def async_url(self) -> str:
        """DB URL with charset for MySQL."""
        base = self.url.get_secret_value()
        if base.startswith("mysql") and "?" not in base:
            return f"{base}?charset=utf8mb4"
        return base

    @property
    def engine_options(self) -> dict[str, Any]:
        """Pool options for ``create_async_engine``."""
        if self.is_sqlite:
            return {}
        return {
            "pool_size": 10,
            "max_overflow": 20,
            "pool_recycle": 3600,
            "pool_pre_ping": True,
        }
