"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from watchparty.core.database import Base
from watchparty.core.rate_limit import limiter
from watchparty.core.settings import ChatConfig, RelayConfig
from watchparty.models.chat_message import ChatMessage  # noqa: F401
from watchparty.models.party_member import PartyMember  # noqa: F401
from watchparty.models.party_room import PartyRoom  # noqa: F401
from watchparty.models.user import User  # noqa: F401
from watchparty.realtime.relay import RelayEngine
from watchparty.repositories.party_repo import PartyRepository
from watchparty.repositories.user_repo import UserRepository
from watchparty.services.room_service import RoomService
from watchparty.services.session_service import SessionService

# --- Test DB (SQLite in-memory) ---

test_engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
test_session_factory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)


@pytest.fixture(autouse=True)
async def setup_db() -> AsyncGenerator[None, None]:
    """Create all tables before each test, drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a test database session."""
    async with test_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@pytest.fixture(autouse=True)
def reset_rate_limits() -> None:
    """Start every test with empty slowapi counters."""
    limiter.reset()


# --- Clock ---


class FrozenClock:
    """Manually advanced UTC clock for expiry and retention tests."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


# --- Sockets ---


class FakeSocket:
    """Collects frames the relay pushes to one client."""

    def __init__(self) -> None:
        self.frames: list[dict[str, Any]] = []

    async def send_json(self, data: Any) -> None:
        self.frames.append(data)

    def events(self, name: str) -> list[Any]:
        """Payloads of every received event called ``name``."""
        return [f["data"] for f in self.frames if f["event"] == name]

    def names(self) -> list[str]:
        return [f["event"] for f in self.frames]

    def clear(self) -> None:
        self.frames.clear()


class BrokenSocket(FakeSocket):
    """A socket whose peer has gone away."""

    async def send_json(self, data: Any) -> None:
        raise RuntimeError("socket closed")


@pytest.fixture
def make_socket() -> type[FakeSocket]:
    """Factory for recording sockets."""
    return FakeSocket


@pytest.fixture
def broken_socket() -> BrokenSocket:
    return BrokenSocket()


@pytest.fixture
def session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database."""
    return test_session_factory


@pytest.fixture
def relay() -> RelayEngine:
    """Relay engine on the test DB with no presence refresh delay."""
    return RelayEngine(
        session_factory=test_session_factory,
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


# --- DB session for tests ---


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a raw async session for repository tests."""
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def session_service(db_session: AsyncSession) -> SessionService:
    return SessionService(UserRepository(db_session), db_session)


@pytest.fixture
def room_service(
    db_session: AsyncSession, session_service: SessionService
) -> RoomService:
    return RoomService(PartyRepository(db_session), session_service, db_session)


# --- App override & client fixtures ---


def _get_app():  # type: ignore[no-untyped-def]
    """Import app lazily and apply overrides."""
    from watchparty.core.database import get_async_session as original_dep
    from watchparty.main import app

    app.dependency_overrides[original_dep] = override_get_async_session
    app.state.relay = RelayEngine(session_factory=test_session_factory)
    return app


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client for async tests."""
    application = _get_app()
    transport = ASGITransport(app=application)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    application.dependency_overrides.clear()
