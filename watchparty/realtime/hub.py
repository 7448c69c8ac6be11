"""Live connection registry and broadcast groups."""

import uuid
from typing import Any, Protocol

import structlog

from watchparty.realtime.connection import ConnectionSession

logger = structlog.get_logger()


class EventSink(Protocol):
    """Anything that can push a JSON frame to one client (e.g. a WebSocket)."""

    async def send_json(self, data: Any) -> None: ...


class ConnectionHub:
    """Maps connection ids to sockets and sessions, and room tokens to members.

    Sends happen in call order on the event loop. A send that fails is logged
    and skipped so one dead socket never stops a fan-out.
    """

    def __init__(self) -> None:
        self._sinks: dict[str, EventSink] = {}
        self._sessions: dict[str, ConnectionSession] = {}
        self._rooms: dict[str, dict[str, None]] = {}

    def register(self, sink: EventSink) -> ConnectionSession:
        connection_id = uuid.uuid4().hex
        session = ConnectionSession(connection_id=connection_id)
        self._sinks[connection_id] = sink
        self._sessions[connection_id] = session
        return session

    def unregister(self, connection_id: str) -> None:
        self._sinks.pop(connection_id, None)
        session = self._sessions.pop(connection_id, None)
        if session is not None and session.room_token is not None:
            self.leave_group(session.room_token, connection_id)

    def get(self, connection_id: str) -> ConnectionSession | None:
        return self._sessions.get(connection_id)

    def __len__(self) -> int:
        return len(self._sessions)

    # --- Room groups ---

    def join_group(self, room_token: str, connection_id: str) -> None:
        self._rooms.setdefault(room_token, {})[connection_id] = None

    def leave_group(self, room_token: str, connection_id: str) -> None:
        members = self._rooms.get(room_token)
        if members is None:
            return
        members.pop(connection_id, None)
        if not members:
            del self._rooms[room_token]

    def group(self, room_token: str) -> list[ConnectionSession]:
        """Sessions bound to a room."""
        return [
            self._sessions[cid]
            for cid in self._rooms.get(room_token, ())
            if cid in self._sessions
        ]

    def dissolve_group(self, room_token: str) -> list[ConnectionSession]:
        """Unbind every connection from a room and drop the group."""
        sessions = self.group(room_token)
        for session in sessions:
            session.unbind_room()
        self._rooms.pop(room_token, None)
        return sessions

    # --- Delivery ---

    async def send(self, connection_id: str, event: str, data: Any = None) -> None:
        sink = self._sinks.get(connection_id)
        if sink is None:
            return
        try:
            await sink.send_json({"event": event, "data": data})
        except Exception:
            logger.warning(
                "Dropped event for unreachable connection",
                connection_id=connection_id,
                event=event,
            )

    async def broadcast(self, event: str, data: Any = None) -> None:
        """Send to every live connection."""
        for connection_id in list(self._sinks):
            await self.send(connection_id, event, data)

    async def broadcast_room(
        self,
        room_token: str,
        event: str,
        data: Any = None,
        exclude: str | None = None,
    ) -> None:
        """Send to every connection bound to ``room_token``."""
        for connection_id in list(self._rooms.get(room_token, ())):
            if connection_id != exclude:
                await self.send(connection_id, event, data)
