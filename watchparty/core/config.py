"""Application configuration using Pydantic Settings V2."""

from functools import cached_property
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from watchparty.core.settings import (
    AppConfig,
    ChatConfig,
    DatabaseConfig,
    RateLimitConfig,
    RelayConfig,
    ServerConfig,
    SessionConfig,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Flat fields are loaded directly from environment variables.
    Domain properties provide grouped access (e.g. settings.chat.retention).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = Field(
        default="watchparty",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Version reported by the API",
    )
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    debug: bool = Field(
        default=True,
        description="Debug mode",
    )

    # Server
    host: str = Field(
        default="0.0.0.0",
        description="Server host",
    )
    port: int = Field(
        default=3000,
        ge=1,
        le=65535,
        description="Server port",
    )
    cors_origins: str = Field(
        default="",
        description="Comma-separated allowed origins outside development",
    )

    # Database
    database_url: SecretStr = Field(
        default=SecretStr("sqlite+aiosqlite:///./chat.db"),
        description="Async database URL (sqlite+aiosqlite://... or mysql+aiomysql://...)",
    )

    # Session tokens
    session_token_ttl_hours: int = Field(
        default=24,
        ge=1,
        le=24 * 30,
        description="Sliding session token lifetime in hours",
    )

    # Global chat
    chat_backlog_size: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Messages sent to a newly connected client",
    )
    chat_retention_minutes: int = Field(
        default=10,
        ge=1,
        description="Messages older than this are pruned",
    )
    chat_prune_interval_seconds: int = Field(
        default=60,
        ge=1,
        description="Interval between chat prune runs",
    )
    active_user_window_minutes: int = Field(
        default=5,
        ge=1,
        description="Users seen within this window are listed as active",
    )

    # Relay
    presence_refresh_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Grace delay before rebroadcasting active users on disconnect",
    )
    system_username: str = Field(
        default="System",
        description="Display name for global chat system notices",
    )
    party_system_username: str = Field(
        default="Party System",
        description="Display name for watch party system notices",
    )
    avatar_base_url: str = Field(
        default="https://ui-avatars.com/api/?name=",
        description="Prefix used to build default avatars from a display name",
    )

    # Rate limits
    session_create_rate_limit: str = Field(
        default="10/minute",
        description="Session creation endpoint rate limit",
    )
    party_create_rate_limit: str = Field(
        default="10/minute",
        description="Watch party creation endpoint rate limit",
    )

    # --- Domain properties ---

    @cached_property
    def app(self) -> AppConfig:
        """Application environment configuration."""
        return AppConfig(
            name=self.app_name,
            version=self.app_version,
            env=self.app_env,
            debug=self.debug,
        )

    @cached_property
    def server(self) -> ServerConfig:
        """Server configuration."""
        return ServerConfig(
            host=self.host,
            port=self.port,
            cors_origins=tuple(
                o.strip() for o in self.cors_origins.split(",") if o.strip()
            ),
        )

    @cached_property
    def database(self) -> DatabaseConfig:
        """Database connection configuration."""
        return DatabaseConfig(url=self.database_url)

    @cached_property
    def session(self) -> SessionConfig:
        """Session token configuration."""
        return SessionConfig(token_ttl_hours=self.session_token_ttl_hours)

    @cached_property
    def chat(self) -> ChatConfig:
        """Global chat configuration."""
        return ChatConfig(
            backlog_size=self.chat_backlog_size,
            retention_minutes=self.chat_retention_minutes,
            prune_interval_seconds=self.chat_prune_interval_seconds,
            active_window_minutes=self.active_user_window_minutes,
        )

    @cached_property
    def relay(self) -> RelayConfig:
        """Relay engine configuration."""
        return RelayConfig(
            presence_refresh_delay_seconds=self.presence_refresh_delay_seconds,
            system_username=self.system_username,
            party_system_username=self.party_system_username,
            avatar_base_url=self.avatar_base_url,
        )

    @cached_property
    def rate_limit(self) -> RateLimitConfig:
        """HTTP rate limit configuration."""
        return RateLimitConfig(
            session_create=self.session_create_rate_limit,
            party_create=self.party_create_rate_limit,
        )


# Global settings instance
settings = Settings()
