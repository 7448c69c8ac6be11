"""Domain-specific configuration models."""

from watchparty.core.settings.app_config import AppConfig
from watchparty.core.settings.chat_config import ChatConfig
from watchparty.core.settings.database_config import DatabaseConfig
from watchparty.core.settings.rate_limit_config import RateLimitConfig
from watchparty.core.settings.relay_config import RelayConfig
from watchparty.core.settings.server_config import ServerConfig
from watchparty.core.settings.session_config import SessionConfig

__all__ = [
    "AppConfig",
    "ChatConfig",
    "DatabaseConfig",
    "RateLimitConfig",
    "RelayConfig",
    "ServerConfig",
    "SessionConfig",
]
