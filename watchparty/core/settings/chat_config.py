"""Global chat configuration."""

from datetime import timedelta

from pydantic import BaseModel


class ChatConfig(BaseModel, frozen=True):
    """Chat backlog, retention and presence settings."""

    backlog_size: int
    retention_minutes: int
    prune_interval_seconds: int
    active_window_minutes: int

    @property
    def retention(self) -> timedelta:
        return timedelta(minutes=self.retention_minutes)

    @property
    def active_window(self) -> timedelta:
        return timedelta(minutes=self.active_window_minutes)
