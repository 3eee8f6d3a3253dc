"""User module dependencies."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.infrastructure.database.session import get_db_session
from src.modules.users.domain.ports import MagicLinkSender
from src.modules.users.infrastructure.email_sender import SMTPMagicLinkSender
from src.modules.users.infrastructure.mappers import MagicLinkMapper, UserMapper
from src.modules.users.infrastructure.repositories import (
    PostgreSQLMagicLinkRepository,
    PostgreSQLUserRepository,
)


def get_user_mapper() -> UserMapper:
    return UserMapper()


def get_magic_link_mapper() -> MagicLinkMapper:
    return MagicLinkMapper()


def get_magic_link_sender() -> MagicLinkSender:
    return SMTPMagicLinkSender()


async def get_user_repository(
    session: AsyncSession = Depends(get_db_session),
    mapper: UserMapper = Depends(get_user_mapper),
) -> PostgreSQLUserRepository:
    return PostgreSQLUserRepository(session, mapper)


async def get_magic_link_repository(
    session: AsyncSession = Depends(get_db_session),
    mapper: MagicLinkMapper = Depends(get_magic_link_mapper),
) -> PostgreSQLMagicLinkRepository:
    return PostgreSQLMagicLinkRepository(session, mapper)
