"""Integration tests for the /ws socket endpoint.

The socket runs on the TestClient's own event loop, so the relay gets a
file-backed database without pooled connections.
"""

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from starlette.testclient import WebSocketTestSession

from watchparty.api.realtime_router import router as realtime_router
from watchparty.core.database import Base
from watchparty.core.settings import ChatConfig, RelayConfig
from watchparty.realtime.relay import RelayEngine

MALFORMED = {"message": "Malformed frame", "code": "INVALID_PAYLOAD"}


@pytest.fixture
def client(tmp_path: Path) -> Iterator[TestClient]:
    path = tmp_path / "relay.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    engine = create_async_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool)
    app = FastAPI()
    app.include_router(realtime_router)
    app.state.relay = RelayEngine(
        session_factory=async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        ),
        chat_config=ChatConfig(
            backlog_size=50,
            retention_minutes=10,
            prune_interval_seconds=60,
            active_window_minutes=5,
        ),
        relay_config=RelayConfig(
            presence_refresh_delay_seconds=0,
            system_username="System",
            party_system_username="Party System",
            avatar_base_url="https://ui-avatars.com/api/?name=",
        ),
    )
    # One shared portal, so every socket in a test runs on the same loop.
    with TestClient(app) as test_client:
        yield test_client


def _receive_until(ws: WebSocketTestSession, event: str) -> Any:
    """Skip broadcasts until ``event`` arrives and return its payload."""
    while True:
        frame = ws.receive_json()
        if frame["event"] == event:
            return frame["data"]


def _join(ws: WebSocketTestSession, username: str) -> dict[str, Any]:
    ws.send_text(json.dumps({"event": "join", "data": {"username": username}}))
    return _receive_until(ws, "token_created")


class TestRelaySocket:
    """Frames over a real socket connection."""

    def test_backlog_is_first_frame(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as ws:
            assert ws.receive_json() == {"event": "load_messages", "data": []}

    def test_join_round_trip(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as ws:
            created = _join(ws, "alice")
            assert created["username"] == "alice"
            assert created["token"]
            system = _receive_until(ws, "message")
            assert system["message"] == "alice has joined the chat"

    def test_non_json_text_keeps_socket_open(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as ws:
            ws.send_text("not json")
            assert _receive_until(ws, "error") == MALFORMED
            assert _join(ws, "alice")["username"] == "alice"

    def test_binary_frames(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as ws:
            ws.send_bytes(b"\xff")
            assert _receive_until(ws, "error") == MALFORMED

            frame = {"event": "join", "data": {"username": "bob"}}
            ws.send_bytes(json.dumps(frame).encode())
            assert _receive_until(ws, "token_created")["username"] == "bob"

    def test_close_announces_departure(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as watcher:
            _join(watcher, "watcher")
            with client.websocket_connect("/ws") as ws:
                _join(ws, "alice")
                joined = _receive_until(watcher, "message")
                while joined["message"] != "alice has joined the chat":
                    joined = _receive_until(watcher, "message")

            left = _receive_until(watcher, "message")
            assert left["username"] == "System"
            assert left["message"] == "alice has left the chat"
