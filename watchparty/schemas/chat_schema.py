"""Global and party chat message schemas."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, field_serializer


class _ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    message: str
    timestamp: datetime
    avatar: str | None = None

    @field_serializer("timestamp")
    def _timestamp_utc(self, value: datetime) -> datetime:
        # SQLite hands stored times back without a zone; they are UTC.
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class ChatMessageResponse(_ChatMessage):
    """Stored global chat message as sent to clients."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int


class PartyChatMessage(_ChatMessage):
    """Transient watch party message. Never persisted."""
