"""Real-time relay engine for global chat and watch parties.

Each connection moves through anonymous -> identified -> in_room ->
disconnected. Handlers run to completion per connection in arrival order and
suspend only at storage calls, so events from other connections may
interleave there. Every failure inside a handler becomes a scoped error
event for the originating connection; nothing here closes a socket.
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Coroutine
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from watchparty.core.config import settings
from watchparty.core.database import session_scope
from watchparty.core.exceptions import (
    AppException,
    InvalidPayloadError,
    InvalidSessionError,
    NotInRoomError,
)
from watchparty.core.settings import ChatConfig, RelayConfig
from watchparty.models.chat_message import ChatMessage
from watchparty.realtime.connection import ConnectionSession
from watchparty.realtime.hub import ConnectionHub, EventSink
from watchparty.repositories.chat_repo import ChatRepository
from watchparty.repositories.party_repo import PartyRepository
from watchparty.repositories.user_repo import UserRepository
from watchparty.schemas.chat_schema import ChatMessageResponse, PartyChatMessage
from watchparty.schemas.party_schema import JoinRoomResponse, PartyMemberResponse
from watchparty.schemas.realtime_schema import (
    AuthenticatePayload,
    Frame,
    JoinPartyRoomPayload,
    JoinPayload,
    MessagePayload,
    VideoSyncPayload,
)
from watchparty.schemas.session_schema import ActiveUser
from watchparty.services.chat_log_service import ChatLogService
from watchparty.services.room_service import RoomService
from watchparty.services.session_service import (
    SessionService,
    default_avatar_url,
    utcnow,
)

logger = structlog.get_logger()

PayloadT = TypeVar("PayloadT", bound=BaseModel)
Handler = Callable[[ConnectionSession, Any], Awaitable[None]]

PARTY_ENDED_MESSAGE = "The host has left the watch party"

# Inbound event -> error event sent back to the sender on failure.
ERROR_EVENTS: dict[str, str] = {
    "authenticate": "auth_error",
    "join": "join_error",
    "message": "chat_error",
    "join_party_room": "party_error",
    "party_message": "party_error",
    "video_sync": "party_error",
}


@dataclass(frozen=True)
class _Services:
    sessions: SessionService
    rooms: RoomService
    chat: ChatLogService


def _parse(model: type[PayloadT], data: Any, error: AppException) -> PayloadT:
    try:
        return model.model_validate(data if data is not None else {})
    except ValidationError as exc:
        raise error from exc


class RelayEngine:
    """Owns live connections, binds them to rooms and fans out events."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        hub: ConnectionHub | None = None,
        chat_config: ChatConfig | None = None,
        relay_config: RelayConfig | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self.hub = hub or ConnectionHub()
        self._chat_config = chat_config or settings.chat
        self._relay_config = relay_config or settings.relay
        self._clock = clock
        self._tasks: set[asyncio.Task[None]] = set()
        self._handlers: dict[str, Handler] = {
            "authenticate": self.authenticate,
            "join": self.join,
            "message": self.send_global_message,
            "join_party_room": self.join_party_room,
            "party_message": self.send_party_message,
            "video_sync": self.video_sync,
        }

    @asynccontextmanager
    async def _services(self) -> AsyncIterator[_Services]:
        async with session_scope(self._session_factory) as session:
            session_service = SessionService(
                UserRepository(session), session, clock=self._clock
            )
            yield _Services(
                sessions=session_service,
                rooms=RoomService(
                    PartyRepository(session),
                    session_service,
                    session,
                    clock=self._clock,
                ),
                chat=ChatLogService(
                    ChatRepository(session), session, clock=self._clock
                ),
            )

    # --- Connection lifecycle ---

    async def connect(self, sink: EventSink) -> str:
        """Register a socket, seed its chat history and refresh presence."""
        session = self.hub.register(sink)
        logger.info("Client connected", connection_id=session.connection_id)

        backlog: list[dict[str, Any]] = []
        try:
            async with self._services() as svc:
                records = await svc.chat.recent(self._chat_config.backlog_size)
                backlog = [self._message_payload(r) for r in records]
        except AppException:
            logger.warning(
                "Chat backlog unavailable", connection_id=session.connection_id
            )

        await self.hub.send(session.connection_id, "load_messages", backlog)
        await self._broadcast_active_users()
        return session.connection_id

    async def dispatch(
        self, connection_id: str, raw: str | bytes | dict | None
    ) -> None:
        """Decode one inbound frame and run its handler."""
        session = self.hub.get(connection_id)
        if session is None:
            return

        try:
            if isinstance(raw, dict):
                frame = Frame.model_validate(raw)
            else:
                frame = Frame.model_validate_json(raw or b"")
        except ValidationError:
            await self._send_error(
                connection_id, "error", InvalidPayloadError(message="Malformed frame")
            )
            return

        handler = self._handlers.get(frame.event)
        if handler is None:
            await self._send_error(
                connection_id,
                "error",
                InvalidPayloadError(message=f"Unknown event: {frame.event}"),
            )
            return

        try:
            await handler(session, frame.data)
        except AppException as exc:
            logger.info(
                "Relay event rejected",
                connection_id=connection_id,
                relay_event=frame.event,
                code=exc.code,
            )
            await self._send_error(connection_id, ERROR_EVENTS[frame.event], exc)

    async def disconnect(self, connection_id: str) -> None:
        """Tear down a connection from any state."""
        session = self.hub.get(connection_id)
        if session is None:
            return

        if session.in_room:
            await self._leave_current_room(session)
        self.hub.unregister(connection_id)
        session.close()
        logger.info("Client disconnected", connection_id=connection_id)

        await self._post_system_message(f"{session.username} has left the chat")
        self._spawn(self._refresh_active_users_later())

    # --- Identity ---

    async def authenticate(self, session: ConnectionSession, data: Any) -> None:
        """Resume an identity from a stored session token."""
        if not isinstance(data, dict) or not data.get("token"):
            raise InvalidSessionError(message="No token provided")
        payload = _parse(
            AuthenticatePayload, data, InvalidSessionError(message="Invalid token")
        )

        async with self._services() as svc:
            user = await svc.sessions.validate(payload.token)
            if user is None:
                raise InvalidSessionError(message="Invalid token")
            await svc.sessions.extend(payload.token)
            username, avatar = user.username, user.avatar

        session.identify(username, avatar, payload.token)
        logger.info("Client authenticated", connection_id=session.connection_id)

        await self.hub.send(
            session.connection_id,
            "auth_success",
            {"username": session.username, "avatar": session.avatar},
        )
        await self.hub.broadcast(
            "user_joined", {"username": session.username, "avatar": session.avatar}
        )
        await self._broadcast_active_users()

    async def join(self, session: ConnectionSession, data: Any) -> None:
        """Claim a display name and receive a fresh session token."""
        payload = _parse(JoinPayload, data, InvalidPayloadError())
        username = (payload.username or "").strip() or session.username
        avatar = payload.avatar or default_avatar_url(username)

        async with self._services() as svc:
            token = await svc.sessions.create_or_refresh(username, avatar)

        session.identify(username, avatar, token)

        await self.hub.send(
            session.connection_id,
            "token_created",
            {"token": token, "username": username, "avatar": avatar},
        )
        await self.hub.broadcast(
            "user_joined", {"username": username, "avatar": avatar}
        )
        await self._post_system_message(f"{username} has joined the chat")
        await self._broadcast_active_users()

    # --- Global chat ---

    async def send_global_message(self, session: ConnectionSession, data: Any) -> None:
        """Store a message and relay it to every connection.

        A message that could not be stored is not relayed.
        """
        if not session.identified:
            raise InvalidSessionError(message="Join the chat before sending messages")
        payload = _parse(
            MessagePayload,
            data,
            InvalidPayloadError(message="Message text is required"),
        )

        async with self._services() as svc:
            record = await svc.chat.append(
                session.username, payload.message, session.avatar
            )
            message = self._message_payload(record)

        await self.hub.broadcast("message", message)

        if session.token is not None:
            try:
                async with self._services() as svc:
                    await svc.sessions.extend(session.token)
            except AppException:
                logger.warning(
                    "Session extension failed", connection_id=session.connection_id
                )

    # --- Watch parties ---

    async def join_party_room(self, session: ConnectionSession, data: Any) -> None:
        """Bind the connection to a room, leaving any other room it was in."""
        if not session.identified:
            raise InvalidSessionError(
                message="Join the chat before joining a watch party"
            )
        payload = _parse(
            JoinPartyRoomPayload,
            data,
            InvalidPayloadError(message="Room token and user token are required"),
        )

        async with self._services() as svc:
            membership = await svc.rooms.join_room(
                payload.room_token, payload.user_token
            )
            previous = session.member_token
            if (
                session.room_token == membership.room_token
                and previous is not None
                and previous != payload.user_token
            ):
                # Rebinding under a new token; the old row would never be removed.
                await svc.rooms.drop_membership(membership.room_token, previous)
            members = await svc.rooms.list_members(membership.room_token)

        if session.room_token not in (None, membership.room_token):
            await self._leave_current_room(session)

        session.bind_room(membership.room_token, payload.user_token)
        self.hub.join_group(membership.room_token, session.connection_id)

        await self._post_party_notice(
            membership.room_token, f"{membership.username} has joined the watch party"
        )
        await self._broadcast_members(membership.room_token, members)
        await self.hub.send(
            session.connection_id,
            "party_joined",
            JoinRoomResponse(
                room_token=membership.room_token,
                room_name=membership.room_name,
                is_host=membership.is_host,
            ).model_dump(by_alias=True),
        )

    async def send_party_message(self, session: ConnectionSession, data: Any) -> None:
        """Relay a transient message to the sender's room only."""
        if not session.in_room or session.room_token is None:
            raise NotInRoomError
        payload = _parse(
            MessagePayload,
            data,
            InvalidPayloadError(message="Message text is required"),
        )
        message = PartyChatMessage(
            username=session.username,
            message=payload.message,
            timestamp=self._clock(),
            avatar=session.avatar,
        )
        await self.hub.broadcast_room(
            session.room_token, "party_message", message.model_dump(mode="json")
        )

    async def video_sync(self, session: ConnectionSession, data: Any) -> None:
        """Forward a playback event verbatim to the other members of the room."""
        if not session.in_room or session.room_token is None:
            raise NotInRoomError
        _parse(
            VideoSyncPayload,
            data,
            InvalidPayloadError(message="Video sync action is required"),
        )
        await self.hub.broadcast_room(
            session.room_token, "video_sync", data, exclude=session.connection_id
        )

    async def end_party(self, room_token: str) -> None:
        """Tell every connection in a closed room and unbind them."""
        await self.hub.broadcast_room(
            room_token, "party_ended", {"message": PARTY_ENDED_MESSAGE}
        )
        self.hub.dissolve_group(room_token)

    async def member_left(
        self, room_token: str, user_token: str, username: str
    ) -> None:
        """Unbind connections of a member who left outside the socket.

        Remaining members get the leave notice and a fresh member list.
        """
        for session in self.hub.group(room_token):
            if session.member_token == user_token:
                session.unbind_room()
                self.hub.leave_group(room_token, session.connection_id)

        try:
            async with self._services() as svc:
                members = await svc.rooms.list_members(room_token)
        except AppException:
            logger.warning("Member list unavailable", room_token=room_token)
            return

        await self._post_party_notice(
            room_token, f"{username} has left the watch party"
        )
        await self._broadcast_members(room_token, members)

    async def _leave_current_room(self, session: ConnectionSession) -> None:
        room_token = session.room_token
        member_token = session.member_token
        if room_token is None or member_token is None:
            return

        session.unbind_room()
        self.hub.leave_group(room_token, session.connection_id)

        try:
            async with self._services() as svc:
                result = await svc.rooms.leave_room(room_token, member_token)
                members: list[str] = []
                if not result.room_closed:
                    members = await svc.rooms.list_members(room_token)
        except AppException:
            logger.warning(
                "Room leave failed",
                connection_id=session.connection_id,
                room_token=room_token,
            )
            return

        if result.room_closed:
            await self.end_party(room_token)
            return

        await self._post_party_notice(
            room_token, f"{session.username} has left the watch party"
        )
        await self._broadcast_members(room_token, members)

    # --- Helpers ---

    def _message_payload(self, record: ChatMessage) -> dict[str, Any]:
        return ChatMessageResponse.model_validate(record).model_dump(mode="json")

    async def _send_error(
        self, connection_id: str, event: str, exc: AppException
    ) -> None:
        await self.hub.send(
            connection_id, event, {"message": exc.message, "code": exc.code}
        )

    async def _post_system_message(self, text: str) -> None:
        system = self._relay_config.system_username
        try:
            async with self._services() as svc:
                record = await svc.chat.append(system, text, default_avatar_url(system))
                message = self._message_payload(record)
        except AppException:
            logger.warning("System message not stored", text=text)
            return
        await self.hub.broadcast("message", message)

    async def _post_party_notice(self, room_token: str, text: str) -> None:
        system = self._relay_config.party_system_username
        notice = PartyChatMessage(
            username=system,
            message=text,
            timestamp=self._clock(),
            avatar=default_avatar_url(system),
        )
        await self.hub.broadcast_room(
            room_token, "party_message", notice.model_dump(mode="json")
        )

    async def _broadcast_members(self, room_token: str, members: list[str]) -> None:
        await self.hub.broadcast_room(
            room_token,
            "party_members",
            [PartyMemberResponse(username=name).model_dump() for name in members],
        )

    async def _broadcast_active_users(self) -> None:
        try:
            async with self._services() as svc:
                users = await svc.sessions.active_users(self._chat_config.active_window)
                active = [ActiveUser.model_validate(u).model_dump() for u in users]
        except AppException:
            logger.warning("Active users unavailable")
            return
        await self.hub.broadcast("active_users", active)

    async def _refresh_active_users_later(self) -> None:
        await asyncio.sleep(self._relay_config.presence_refresh_delay_seconds)
        await self._broadcast_active_users()

    # --- Background tasks ---

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def flush(self) -> None:
        """Wait for pending background work such as delayed presence refreshes."""
        while self._tasks:
            await asyncio.gather(*self._tasks)

    async def aclose(self) -> None:
        """Cancel pending background work."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
