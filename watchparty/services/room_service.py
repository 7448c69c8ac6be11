"""Watch party room registry."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from watchparty.core.exceptions import InvalidSessionError, RoomNotFoundError
from watchparty.core.security import generate_room_token
from watchparty.models.party_room import PartyRoom
from watchparty.repositories.party_repo import PartyRepository
from watchparty.services.session_service import SessionService, utcnow

logger = structlog.get_logger()


@dataclass(frozen=True)
class CreatedRoom:
    """Result of a successful room creation."""

    room_token: str
    room_name: str
    host_username: str


@dataclass(frozen=True)
class RoomMembership:
    """Result of a successful (or repeated) join."""

    room_token: str
    room_name: str
    is_host: bool
    username: str


@dataclass(frozen=True)
class LeaveResult:
    """Outcome of a leave. ``room_closed`` is set when the host left."""

    room_token: str
    room_closed: bool


class RoomService:
    """Creates rooms, manages membership and drives room lifecycle.

    Host authority is the exact session token used at creation. Writes are
    committed one statement group at a time; deactivating a room and wiping
    its members are two separate commits.
    """

    def __init__(
        self,
        party_repo: PartyRepository,
        session_service: SessionService,
        session: AsyncSession,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._party_repo = party_repo
        self._session_service = session_service
        self._session = session
        self._clock = clock

    async def create_room(self, room_name: str, host_token: str) -> CreatedRoom:
        """Create an active room and add the host as its first member."""
        host = await self._session_service.validate(host_token)
        if host is None:
            raise InvalidSessionError(message="Invalid user token")

        room_token = generate_room_token()
        now = self._clock()
        await self._party_repo.create_room(
            room_name=room_name,
            room_token=room_token,
            host_token=host_token,
            created_at=now,
        )
        await self._session.commit()

        await self._party_repo.add_member(
            room_token=room_token,
            user_token=host_token,
            username=host.username,
            joined_at=now,
        )
        await self._session.commit()

        logger.info("Room created", room_token=room_token, host=host.username)
        return CreatedRoom(
            room_token=room_token,
            room_name=room_name,
            host_username=host.username,
        )

    async def join_room(self, room_token: str, user_token: str) -> RoomMembership:
        """Join an active room. Joining twice returns the existing membership."""
        user = await self._session_service.validate(user_token)
        if user is None:
            raise InvalidSessionError(message="Invalid user token")

        room = await self._party_repo.find_active_room(room_token)
        if room is None:
            raise RoomNotFoundError

        membership = RoomMembership(
            room_token=room_token,
            room_name=room.room_name,
            is_host=room.host_token == user_token,
            username=user.username,
        )

        if await self._party_repo.find_member(room_token, user_token) is not None:
            return membership

        try:
            await self._party_repo.add_member(
                room_token=room_token,
                user_token=user_token,
                username=user.username,
                joined_at=self._clock(),
            )
            await self._session.commit()
        except IntegrityError:
            # A concurrent join inserted the same pair first.
            await self._session.rollback()
            logger.info("Duplicate join ignored", room_token=room_token)
            return membership

        logger.info("Room joined", room_token=room_token, username=user.username)
        return membership

    async def leave_room(self, room_token: str, user_token: str) -> LeaveResult:
        """Leave a room. The host leaving terminates it for everyone."""
        hosted = await self._party_repo.find_hosted_room(room_token, user_token)
        if hosted is not None:
            await self._party_repo.deactivate_room(room_token)
            await self._session.commit()
            await self._party_repo.delete_members(room_token)
            await self._session.commit()
            logger.info("Room closed by host", room_token=room_token)
            return LeaveResult(room_token=room_token, room_closed=True)

        await self._party_repo.delete_member(room_token, user_token)
        await self._session.commit()
        logger.info("Room left", room_token=room_token)
        return LeaveResult(room_token=room_token, room_closed=False)

    async def drop_membership(self, room_token: str, user_token: str) -> bool:
        """Remove one membership row without closing the room.

        The host's row is kept. Returns whether a row was removed.
        """
        if await self._party_repo.find_hosted_room(room_token, user_token) is not None:
            return False
        removed = await self._party_repo.delete_member(room_token, user_token)
        await self._session.commit()
        return removed > 0

    async def list_members(self, room_token: str) -> list[str]:
        """Usernames currently in the room, in join order."""
        return await self._party_repo.find_member_usernames(room_token)

    async def get_active_room(self, room_token: str) -> PartyRoom:
        """Return an active room or raise RoomNotFoundError."""
        room = await self._party_repo.find_active_room(room_token)
        if room is None:
            raise RoomNotFoundError
        return room
