"""Chat repository for global message database operations."""

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from watchparty.models.chat_message import ChatMessage


class ChatRepository:
    """Encapsulates global chat message queries."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_message(
        self,
        username: str,
        message: str,
        timestamp: datetime,
        avatar: str | None = None,
    ) -> ChatMessage:
        """Create a single chat message."""
        record = ChatMessage(
            username=username,
            message=message,
            timestamp=timestamp,
            avatar=avatar,
        )
        self._session.add(record)
        await self._session.flush()
        await self._session.refresh(record)
        return record

    async def find_recent(self, limit: int) -> list[ChatMessage]:
        """Return the newest ``limit`` messages in chronological order."""
        result = await self._session.execute(
            select(ChatMessage).order_by(ChatMessage.id.desc()).limit(limit)
        )
        messages = list(result.scalars().all())
        messages.reverse()
        return messages

    async def delete_older_than(self, cutoff: datetime) -> int:
        """Hard-delete messages stamped before ``cutoff``."""
        result = await self._session.execute(
            delete(ChatMessage).where(ChatMessage.timestamp < cutoff)
        )
        return result.rowcount  # type: ignore[attr-defined]
