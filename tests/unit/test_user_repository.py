"""Tests for the SQL user and magic link repositories against SQLite."""

from collections.abc import AsyncGenerator
from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlmodel import SQLModel

from src.core.domain.base_entity import utc_now
from src.modules.users.domain.entities import MagicLink, User
from src.modules.users.infrastructure.mappers import MagicLinkMapper, UserMapper
from src.modules.users.infrastructure.models import MagicLinkModel, UserModel
from src.modules.users.infrastructure.repositories import (
    PostgreSQLMagicLinkRepository,
    PostgreSQLUserRepository,
)


@pytest.fixture
async def session() -> AsyncGenerator[AsyncSession, None]:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(
            SQLModel.metadata.create_all,
            tables=[UserModel.__table__, MagicLinkModel.__table__],
        )

    async with AsyncSession(engine, expire_on_commit=False) as db_session:
        yield db_session

    await engine.dispose()


@pytest.mark.anyio
async def test_require_issue_preference_is_stored(session: AsyncSession) -> None:
    repository = PostgreSQLUserRepository(session, UserMapper())
    user = await repository.create(User(email="user@example.com"))
    assert user.require_issue is False

    user.update_preferences(require_issue=True)
    await repository.update(user)

    stored = await repository.get_by_id(user.id)
    assert stored.require_issue is True


@pytest.mark.anyio
async def test_delete_all_for_email_keeps_other_users(session: AsyncSession) -> None:
    repository = PostgreSQLMagicLinkRepository(session, MagicLinkMapper())
    expires_at = utc_now() + timedelta(minutes=15)
    for email, token in [
        ("user@example.com", "t1"),
        ("user@example.com", "t2"),
        ("other@example.com", "t3"),
    ]:
        await repository.create(
            MagicLink(email=email, token=token, expires_at=expires_at)
        )

    removed = await repository.delete_all_for_email("user@example.com")

    assert removed == 2
    assert await repository.get_by_token("t1") is None
    assert await repository.get_by_token("t3") is not None
