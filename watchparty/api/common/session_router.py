"""Session token endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from watchparty.core.config import settings
from watchparty.core.rate_limit import limiter
from watchparty.dependencies import get_session_service
from watchparty.schemas.response_schema import ApiResponse, success_response
from watchparty.schemas.session_schema import (
    CreateSessionRequest,
    InvalidateSessionResponse,
    SessionResponse,
    TokenRequest,
    ValidateSessionResponse,
)
from watchparty.services.session_service import SessionService

router = APIRouter(prefix="/api/session", tags=["session"])

SessionServiceDep = Annotated[SessionService, Depends(get_session_service)]


@router.post("/create", response_model=ApiResponse[SessionResponse])
@limiter.limit(settings.rate_limit.session_create)
async def create_session(
    request: Request,
    body: CreateSessionRequest,
    session_service: SessionServiceDep,
) -> dict:
    """Claim a display name and receive a session token."""
    token = await session_service.create_or_refresh(body.username, body.avatar)
    return success_response(
        SessionResponse(token=token, username=body.username, avatar=body.avatar)
    )


@router.post("/validate", response_model=ApiResponse[ValidateSessionResponse])
async def validate_session(
    body: TokenRequest,
    session_service: SessionServiceDep,
) -> dict:
    """Check a token and slide its expiry when it is still valid."""
    user = await session_service.validate(body.token)
    if user is None:
        return success_response(ValidateSessionResponse(valid=False))
    await session_service.extend(body.token)
    return success_response(
        ValidateSessionResponse(valid=True, username=user.username, avatar=user.avatar)
    )


@router.post("/invalidate", response_model=ApiResponse[InvalidateSessionResponse])
async def invalidate_session(
    body: TokenRequest,
    session_service: SessionServiceDep,
) -> dict:
    """Revoke a session token."""
    await session_service.invalidate(body.token)
    return success_response(InvalidateSessionResponse(success=True))
