"""Global chat read endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from watchparty.dependencies import get_chat_log_service, get_session_service
from watchparty.schemas.chat_schema import ChatMessageResponse
from watchparty.schemas.response_schema import ApiResponse, success_response
from watchparty.schemas.session_schema import ActiveUser
from watchparty.services.chat_log_service import ChatLogService
from watchparty.services.session_service import SessionService

router = APIRouter(prefix="/api", tags=["chat"])

ChatLogServiceDep = Annotated[ChatLogService, Depends(get_chat_log_service)]
SessionServiceDep = Annotated[SessionService, Depends(get_session_service)]


@router.get("/messages", response_model=ApiResponse[list[ChatMessageResponse]])
async def list_messages(
    chat_log: ChatLogServiceDep,
    limit: int = Query(default=50, ge=1, le=500),
) -> dict:
    """Most recent global chat messages, oldest first."""
    records = await chat_log.recent(limit)
    return success_response([ChatMessageResponse.model_validate(r) for r in records])


@router.get("/users/active", response_model=ApiResponse[list[ActiveUser]])
async def list_active_users(session_service: SessionServiceDep) -> dict:
    """Users seen within the active-user window."""
    users = await session_service.active_users()
    return success_response([ActiveUser.model_validate(u) for u in users])
