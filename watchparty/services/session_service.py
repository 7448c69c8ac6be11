"""Opaque bearer-token session store."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from urllib.parse import quote

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from watchparty.core.config import settings
from watchparty.core.security import generate_session_token
from watchparty.models.user import User
from watchparty.repositories.user_repo import UserRepository

logger = structlog.get_logger()


def utcnow() -> datetime:
    return datetime.now(UTC)


def default_avatar_url(username: str) -> str:
    """Generated avatar for users that did not supply one."""
    return f"{settings.relay.avatar_base_url}{quote(username)}"


class SessionService:
    """Issue, validate, extend and invalidate session tokens.

    A token maps to exactly one username while unexpired. Expiry is a
    sliding window: every refresh or extension pushes it a full TTL ahead.
    Expiry is evaluated lazily at validation time.
    """

    def __init__(
        self,
        user_repo: UserRepository,
        session: AsyncSession,
        ttl: timedelta | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._user_repo = user_repo
        self._session = session
        self._ttl = ttl or settings.session.token_ttl
        self._clock = clock

    async def create_or_refresh(
        self,
        username: str,
        avatar: str | None,
        token: str | None = None,
    ) -> str:
        """Upsert the user row for ``username`` and return its session token."""
        token = token or generate_session_token()
        now = self._clock()
        await self._user_repo.upsert_session(
            username=username,
            avatar=avatar,
            token=token,
            token_expiry=now + self._ttl,
            last_seen=now,
        )
        await self._session.commit()
        logger.info("Session issued", username=username)
        return token

    async def validate(self, token: object) -> User | None:
        """Return the user for a live token, or None.

        Only a non-empty string is a token. Any other shape is rejected.
        """
        if not isinstance(token, str) or not token:
            return None
        return await self._user_repo.find_by_valid_token(token, self._clock())

    async def extend(self, token: str) -> bool:
        """Slide an unexpired token's expiry forward and mark the user seen."""
        now = self._clock()
        touched = await self._user_repo.extend_token(token, now + self._ttl, now)
        await self._session.commit()
        return touched > 0

    async def invalidate(self, token: str) -> bool:
        """Clear the token so it can never validate again."""
        cleared = await self._user_repo.clear_token(token)
        await self._session.commit()
        if cleared:
            logger.info("Session invalidated")
        return cleared > 0

    async def active_users(self, window: timedelta | None = None) -> list[User]:
        """Users seen within the active-user window."""
        window = window or settings.chat.active_window
        return await self._user_repo.find_seen_since(self._clock() - window)
