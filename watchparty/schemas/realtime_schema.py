"""Real-time frame and inbound event payload schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr
from pydantic.alias_generators import to_camel


class Frame(BaseModel):
    """One JSON frame on the socket: ``{"event": ..., "data": ...}``."""

    event: StrictStr = Field(min_length=1)
    data: Any = None


class AuthenticatePayload(BaseModel):
    token: StrictStr = Field(min_length=1)


class JoinPayload(BaseModel):
    username: StrictStr | None = Field(default=None, max_length=100)
    avatar: StrictStr | None = Field(default=None, max_length=500)


class MessagePayload(BaseModel):
    message: StrictStr = Field(min_length=1, max_length=2000)


class JoinPartyRoomPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    room_token: StrictStr = Field(min_length=1)
    user_token: StrictStr = Field(min_length=1)


class VideoSyncPayload(BaseModel):
    """Playback event. Only ``action`` is checked; the rest is opaque."""

    model_config = ConfigDict(extra="allow")

    action: StrictStr = Field(min_length=1)
