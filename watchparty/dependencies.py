"""Global dependencies for the application."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from watchparty.core.database import get_async_session
from watchparty.realtime.relay import RelayEngine
from watchparty.repositories.chat_repo import ChatRepository
from watchparty.repositories.party_repo import PartyRepository
from watchparty.repositories.user_repo import UserRepository
from watchparty.services.chat_log_service import ChatLogService
from watchparty.services.room_service import RoomService
from watchparty.services.session_service import SessionService


def get_user_repository(
    session: AsyncSession = Depends(get_async_session),
) -> UserRepository:
    """Get UserRepository bound to the current session."""
    return UserRepository(session)


def get_chat_repository(
    session: AsyncSession = Depends(get_async_session),
) -> ChatRepository:
    """Get ChatRepository bound to the current session."""
    return ChatRepository(session)


def get_party_repository(
    session: AsyncSession = Depends(get_async_session),
) -> PartyRepository:
    """Get PartyRepository bound to the current session."""
    return PartyRepository(session)


def get_session_service(
    user_repo: UserRepository = Depends(get_user_repository),
    session: AsyncSession = Depends(get_async_session),
) -> SessionService:
    """Get the session token store."""
    return SessionService(user_repo=user_repo, session=session)


def get_room_service(
    party_repo: PartyRepository = Depends(get_party_repository),
    session_service: SessionService = Depends(get_session_service),
    session: AsyncSession = Depends(get_async_session),
) -> RoomService:
    """Get the watch party room registry."""
    return RoomService(
        party_repo=party_repo,
        session_service=session_service,
        session=session,
    )


def get_chat_log_service(
    chat_repo: ChatRepository = Depends(get_chat_repository),
    session: AsyncSession = Depends(get_async_session),
) -> ChatLogService:
    """Get the global chat log."""
    return ChatLogService(chat_repo=chat_repo, session=session)


def get_relay(request: Request) -> RelayEngine:
    """Get the process-wide relay engine."""
    return request.app.state.relay
