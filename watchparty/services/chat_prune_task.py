"""Background task for pruning expired global chat messages."""

import asyncio
from datetime import timedelta

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from watchparty.core.config import settings
from watchparty.core.database import session_scope
from watchparty.repositories.chat_repo import ChatRepository
from watchparty.services.chat_log_service import ChatLogService
from watchparty.services.session_service import utcnow

logger = structlog.get_logger()


async def prune_expired_messages(
    retention: timedelta | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> int:
    """Delete messages older than the retention window in one unit of work.

    Clients are not notified; pruning only shrinks the backlog future
    connections receive.
    """
    retention = retention or settings.chat.retention
    async with session_scope(session_factory) as session:
        service = ChatLogService(ChatRepository(session), session)
        deleted = await service.prune(utcnow() - retention)
    if deleted:
        logger.info("Chat messages pruned", deleted=deleted)
    return deleted


async def run_chat_pruner(
    interval_seconds: float | None = None,
    retention: timedelta | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> None:
    """Prune on a fixed interval until cancelled.

    A failing run is logged and the loop keeps going.
    """
    interval = interval_seconds or settings.chat.prune_interval_seconds
    while True:
        await asyncio.sleep(interval)
        try:
            await prune_expired_messages(retention, session_factory)
        except Exception:
            logger.exception("Chat prune run failed")
