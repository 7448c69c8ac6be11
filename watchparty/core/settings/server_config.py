"""HTTP and WebSocket listener configuration."""

from pydantic import BaseModel


class ServerConfig(BaseModel, frozen=True):
    """Listener and cross-origin settings."""

    host: str
    port: int
    cors_origins: tuple[str, ...]

    @property
    def bind(self) -> str:
        return f"{self.host}:{self.port}"

    def allowed_origins(self, development: bool) -> list[str]:
        """Any origin in development, the configured list otherwise."""
        if development:
            return ["*"]
        return list(self.cors_origins)
