"""Watch party HTTP bindings.

These run the same session validation and room registry operations as the
socket events.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from watchparty.core.config import settings
from watchparty.core.exceptions import InvalidSessionError
from watchparty.core.rate_limit import limiter
from watchparty.dependencies import get_relay, get_room_service, get_session_service
from watchparty.realtime.relay import RelayEngine
from watchparty.schemas.party_schema import (
    CreateRoomRequest,
    CreateRoomResponse,
    JoinRoomResponse,
    LeaveRoomResponse,
    PartyMemberResponse,
    RoomTokenRequest,
)
from watchparty.schemas.response_schema import ApiResponse, success_response
from watchparty.services.room_service import RoomService
from watchparty.services.session_service import SessionService

router = APIRouter(prefix="/api/party", tags=["party"])

RoomServiceDep = Annotated[RoomService, Depends(get_room_service)]
SessionServiceDep = Annotated[SessionService, Depends(get_session_service)]
RelayDep = Annotated[RelayEngine, Depends(get_relay)]


@router.post("/create", response_model=ApiResponse[CreateRoomResponse])
@limiter.limit(settings.rate_limit.party_create)
async def create_room(
    request: Request,
    body: CreateRoomRequest,
    room_service: RoomServiceDep,
) -> dict:
    """Create a watch party hosted by the caller."""
    room = await room_service.create_room(body.room_name, body.user_token)
    return success_response(
        CreateRoomResponse(
            room_token=room.room_token,
            room_name=room.room_name,
            host_username=room.host_username,
        )
    )


@router.post("/join", response_model=ApiResponse[JoinRoomResponse])
async def join_room(
    body: RoomTokenRequest,
    room_service: RoomServiceDep,
) -> dict:
    """Join an active watch party."""
    membership = await room_service.join_room(body.room_token, body.user_token)
    return success_response(
        JoinRoomResponse(
            room_token=membership.room_token,
            room_name=membership.room_name,
            is_host=membership.is_host,
        )
    )


@router.post("/leave", response_model=ApiResponse[LeaveRoomResponse])
async def leave_room(
    body: RoomTokenRequest,
    room_service: RoomServiceDep,
    session_service: SessionServiceDep,
    relay: RelayDep,
) -> dict:
    """Leave a watch party. The host leaving closes it for everyone."""
    user = await session_service.validate(body.user_token)
    if user is None:
        raise InvalidSessionError(message="Invalid user token")
    result = await room_service.leave_room(body.room_token, body.user_token)
    if result.room_closed:
        await relay.end_party(body.room_token)
        message = "Watch party room closed"
    else:
        await relay.member_left(body.room_token, body.user_token, user.username)
        message = "Left watch party room"
    return success_response(
        LeaveRoomResponse(success=True, room_closed=result.room_closed),
        message=message,
    )


@router.get("/{room_token}/members", response_model=ApiResponse[list[PartyMemberResponse]])
async def list_members(
    room_token: str,
    room_service: RoomServiceDep,
) -> dict:
    """Members of an active watch party."""
    await room_service.get_active_room(room_token)
    members = await room_service.list_members(room_token)
    return success_response([PartyMemberResponse(username=name) for name in members])
