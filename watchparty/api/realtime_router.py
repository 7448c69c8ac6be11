"""WebSocket endpoint for the relay engine."""

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from watchparty.realtime.relay import RelayEngine

logger = structlog.get_logger()

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def relay_socket(websocket: WebSocket) -> None:
    """One persistent connection. Frames are handled strictly in arrival order.

    Text and binary frames are both passed to the relay; anything it cannot
    decode is answered with an ``error`` event and the socket stays open.
    """
    relay: RelayEngine = websocket.app.state.relay
    await websocket.accept()
    connection_id = await relay.connect(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            frame = message.get("text")
            if frame is None:
                frame = message.get("bytes")
            await relay.dispatch(connection_id, frame)
    except WebSocketDisconnect as exc:
        logger.info("Socket closed", connection_id=connection_id, code=exc.code)
    finally:
        await relay.disconnect(connection_id)
