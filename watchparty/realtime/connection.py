"""Per-connection transient state."""

import random
from dataclasses import dataclass, field
from enum import StrEnum

from watchparty.services.session_service import default_avatar_url


class ConnectionState(StrEnum):
    ANONYMOUS = "anonymous"
    IDENTIFIED = "identified"
    IN_ROOM = "in_room"
    DISCONNECTED = "disconnected"


def anonymous_username() -> str:
    return f"Anonymous_{random.randint(0, 999)}"


@dataclass
class ConnectionSession:
    """State owned by exactly one live socket.

    Several connections may share a username and token; each keeps its own
    session. ``member_token`` is the token the connection joined its current
    room with, and is what leaving the room is keyed on.
    """

    connection_id: str
    username: str = field(default_factory=anonymous_username)
    avatar: str = ""
    token: str | None = None
    identified: bool = False
    room_token: str | None = None
    member_token: str | None = None
    closed: bool = False

    def __post_init__(self) -> None:
        if not self.avatar:
            self.avatar = default_avatar_url(self.username)

    @property
    def state(self) -> ConnectionState:
        if self.closed:
            return ConnectionState.DISCONNECTED
        if self.room_token is not None:
            return ConnectionState.IN_ROOM
        if self.identified:
            return ConnectionState.IDENTIFIED
        return ConnectionState.ANONYMOUS

    @property
    def in_room(self) -> bool:
        return self.state is ConnectionState.IN_ROOM

    def identify(self, username: str, avatar: str | None, token: str) -> None:
        self.username = username
        self.avatar = avatar or default_avatar_url(username)
        self.token = token
        self.identified = True

    def bind_room(self, room_token: str, member_token: str) -> None:
        self.room_token = room_token
        self.member_token = member_token

    def unbind_room(self) -> None:
        self.room_token = None
        self.member_token = None

    def close(self) -> None:
        self.closed = True
