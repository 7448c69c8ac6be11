"""Party repository: the single storage interface for rooms and members."""

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from watchparty.models.party_member import PartyMember
from watchparty.models.party_room import PartyRoom


class PartyRepository:
    """Encapsulates watch party room and membership queries."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # --- Rooms ---

    async def create_room(
        self,
        room_name: str,
        room_token: str,
        host_token: str,
        created_at: datetime,
    ) -> PartyRoom:
        """Insert a new active room."""
        room = PartyRoom(
            room_name=room_name,
            room_token=room_token,
            host_token=host_token,
            created_at=created_at,
            active=True,
        )
        self._session.add(room)
        await self._session.flush()
        return room

    async def find_active_room(self, room_token: str) -> PartyRoom | None:
        """Find an active room by token."""
        result = await self._session.execute(
            select(PartyRoom).where(
                PartyRoom.room_token == room_token,
                PartyRoom.active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def find_hosted_room(
        self, room_token: str, host_token: str
    ) -> PartyRoom | None:
        """Find a room, active or not, hosted by ``host_token``."""
        result = await self._session.execute(
            select(PartyRoom).where(
                PartyRoom.room_token == room_token,
                PartyRoom.host_token == host_token,
            )
        )
        return result.scalar_one_or_none()

    async def deactivate_room(self, room_token: str) -> int:
        """Mark a room inactive. Rooms are never re-activated."""
        result = await self._session.execute(
            update(PartyRoom)
            .where(PartyRoom.room_token == room_token)
            .values(active=False)
        )
        return result.rowcount  # type: ignore[attr-defined]

    # --- Members ---

    async def find_member(
        self, room_token: str, user_token: str
    ) -> PartyMember | None:
        """Find one membership row."""
        result = await self._session.execute(
            select(PartyMember).where(
                PartyMember.room_token == room_token,
                PartyMember.user_token == user_token,
            )
        )
        return result.scalar_one_or_none()

    async def add_member(
        self,
        room_token: str,
        user_token: str,
        username: str,
        joined_at: datetime,
    ) -> PartyMember:
        """Insert a membership row. Raises IntegrityError on duplicates."""
        member = PartyMember(
            room_token=room_token,
            user_token=user_token,
            username=username,
            joined_at=joined_at,
        )
        self._session.add(member)
        await self._session.flush()
        return member

    async def delete_member(self, room_token: str, user_token: str) -> int:
        """Remove a single membership row."""
        result = await self._session.execute(
            delete(PartyMember).where(
                PartyMember.room_token == room_token,
                PartyMember.user_token == user_token,
            )
        )
        return result.rowcount  # type: ignore[attr-defined]

    async def delete_members(self, room_token: str) -> int:
        """Remove every membership row of a room."""
        result = await self._session.execute(
            delete(PartyMember).where(PartyMember.room_token == room_token)
        )
        return result.rowcount  # type: ignore[attr-defined]

    async def find_member_usernames(self, room_token: str) -> list[str]:
        """Usernames of a room's members in join order."""
        result = await self._session.execute(
            select(PartyMember.username)
            .where(PartyMember.room_token == room_token)
            .order_by(PartyMember.id.asc())
        )
        return list(result.scalars().all())
