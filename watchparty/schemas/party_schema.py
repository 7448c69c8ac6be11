"""Watch party request/response schemas.

Field names are camelCase on the wire.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class CreateRoomRequest(_CamelModel):
    """Create a watch party hosted by the caller's session."""

    room_name: str = Field(min_length=1, max_length=255)
    user_token: str = Field(min_length=1)


class RoomTokenRequest(_CamelModel):
    """Join or leave a watch party."""

    room_token: str = Field(min_length=1)
    user_token: str = Field(min_length=1)


class CreateRoomResponse(_CamelModel):
    room_token: str
    room_name: str
    host_username: str


class JoinRoomResponse(_CamelModel):
    """Also used as the ``party_joined`` event payload."""

    room_token: str
    room_name: str
    is_host: bool


class LeaveRoomResponse(_CamelModel):
    success: bool
    room_closed: bool


class PartyMemberResponse(_CamelModel):
    username: str
