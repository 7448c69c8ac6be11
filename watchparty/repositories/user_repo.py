"""User repository for session-related database operations."""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from watchparty.models.user import User


class UserRepository:
    """Encapsulates user and session token queries."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_username(self, username: str) -> User | None:
        """Find a user by display name."""
        result = await self._session.execute(
            select(User).where(User.username == username)
        )
        return result.scalar_one_or_none()

    async def find_by_valid_token(self, token: str, now: datetime) -> User | None:
        """Find the user holding ``token`` if it expires strictly after ``now``."""
        result = await self._session.execute(
            select(User).where(User.token == token, User.token_expiry > now)
        )
        return result.scalar_one_or_none()

    async def upsert_session(
        self,
        username: str,
        avatar: str | None,
        token: str,
        token_expiry: datetime,
        last_seen: datetime,
    ) -> User:
        """Insert or update the row keyed by username with a fresh token."""
        user = await self.find_by_username(username)
        if user is None:
            user = User(username=username)
            self._session.add(user)
        user.avatar = avatar
        user.token = token
        user.token_expiry = token_expiry
        user.last_seen = last_seen
        await self._session.flush()
        return user

    async def extend_token(
        self, token: str, token_expiry: datetime, now: datetime
    ) -> int:
        """Push an unexpired token's expiry forward. Returns rows touched."""
        result = await self._session.execute(
            update(User)
            .where(User.token == token, User.token_expiry > now)
            .values(token_expiry=token_expiry, last_seen=now)
        )
        return result.rowcount  # type: ignore[attr-defined]

    async def clear_token(self, token: str) -> int:
        """Make ``token`` permanently unusable. Returns rows touched."""
        result = await self._session.execute(
            update(User)
            .where(User.token == token)
            .values(token=None, token_expiry=None)
        )
        return result.rowcount  # type: ignore[attr-defined]

    async def find_seen_since(self, cutoff: datetime) -> list[User]:
        """Users whose last activity is after ``cutoff``."""
        result = await self._session.execute(
            select(User).where(User.last_seen > cutoff).order_by(User.username.asc())
        )
        return list(result.scalars().all())
