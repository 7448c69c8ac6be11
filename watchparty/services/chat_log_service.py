"""Append-only global chat log with time-based retention."""

from collections.abc import Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from watchparty.core.exceptions import InvalidPayloadError, InvalidSessionError
from watchparty.models.chat_message import ChatMessage
from watchparty.repositories.chat_repo import ChatRepository
from watchparty.services.session_service import utcnow


class ChatLogService:
    """Stores global chat messages and serves the connect-time backlog."""

    def __init__(
        self,
        chat_repo: ChatRepository,
        session: AsyncSession,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._chat_repo = chat_repo
        self._session = session
        self._clock = clock

    async def append(
        self, username: str, message: str, avatar: str | None = None
    ) -> ChatMessage:
        """Persist a message stamped with the current time."""
        if not username:
            raise InvalidSessionError(message="No identity for this connection")
        if not message or not message.strip():
            raise InvalidPayloadError(message="Message text is required")
        record = await self._chat_repo.create_message(
            username=username,
            message=message,
            timestamp=self._clock(),
            avatar=avatar,
        )
        await self._session.commit()
        return record

    async def recent(self, limit: int) -> list[ChatMessage]:
        """The newest ``limit`` messages, oldest first."""
        return await self._chat_repo.find_recent(limit)

    async def prune(self, older_than: datetime) -> int:
        """Delete messages stamped before ``older_than``."""
        deleted = await self._chat_repo.delete_older_than(older_than)
        await self._session.commit()
        return deleted
