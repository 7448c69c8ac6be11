"""Tests for ChatRepository."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from watchparty.repositories.chat_repo import ChatRepository

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def repo(db_session: AsyncSession) -> ChatRepository:
    return ChatRepository(db_session)


class TestChatRepository:
    """Tests for global chat message storage."""

    async def test_create_message(self, repo: ChatRepository) -> None:
        record = await repo.create_message(
            username="alice", message="hello", timestamp=NOW, avatar="a.png"
        )
        assert record.id is not None
        assert record.username == "alice"
        assert record.message == "hello"
        assert record.avatar == "a.png"

    async def test_find_recent_oldest_first(
        self, repo: ChatRepository, db_session: AsyncSession
    ) -> None:
        for i in range(5):
            await repo.create_message(
                username="alice",
                message=f"m{i}",
                timestamp=NOW + timedelta(seconds=i),
            )
        await db_session.commit()
        recent = await repo.find_recent(3)
        assert [m.message for m in recent] == ["m2", "m3", "m4"]

    async def test_find_recent_empty(self, repo: ChatRepository) -> None:
        assert await repo.find_recent(50) == []

    async def test_delete_older_than(
        self, repo: ChatRepository, db_session: AsyncSession
    ) -> None:
        await repo.create_message(
            username="a", message="old", timestamp=NOW - timedelta(minutes=20)
        )
        await repo.create_message(username="a", message="new", timestamp=NOW)
        await db_session.commit()

        deleted = await repo.delete_older_than(NOW - timedelta(minutes=10))
        await db_session.commit()

        assert deleted == 1
        assert [m.message for m in await repo.find_recent(10)] == ["new"]
