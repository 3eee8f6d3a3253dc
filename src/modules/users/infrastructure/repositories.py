"""User repository implementations."""

from loguru import logger
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from src.core.domain.base_entity import utc_now
from src.modules.users.domain.entities import MagicLink, User
from src.modules.users.domain.repository import MagicLinkRepository, UserRepository
from src.modules.users.infrastructure.mappers import MagicLinkMapper, UserMapper
from src.modules.users.infrastructure.models import MagicLinkModel, UserModel


class PostgreSQLUserRepository(UserRepository):
    """PostgreSQL user repository implementation."""

    def __init__(self, session: AsyncSession, mapper: UserMapper):
        self.session = session
        self.mapper = mapper
        self.logger = logger

    async def get_by_id(self, user_id: str) -> User | None:
        statement = select(UserModel).where(UserModel.id == user_id)
        result = await self.session.execute(statement)
        model = result.scalar_one_or_none()
        return self.mapper.to_domain(model) if model else None

    async def get_by_email(self, email: str) -> User | None:
        statement = select(UserModel).where(UserModel.email == email)
        result = await self.session.execute(statement)
        model = result.scalar_one_or_none()
        return self.mapper.to_domain(model) if model else None

    async def create(self, user: User) -> User:
        model = self.mapper.to_model(user)
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return self.mapper.to_domain(model)

    async def update(self, user: User) -> User:
        statement = select(UserModel).where(UserModel.id == user.id)
        result = await self.session.execute(statement)
        existing = result.scalar_one_or_none()
        if not existing:
            raise ValueError(f"User with id {user.id} not found")

        existing.email = user.email
        existing.is_active = user.is_active
        existing.last_login_at = user.last_login_at
        existing.display_name = user.display_name
        existing.require_issue = user.require_issue
        existing.updated_at = user.updated_at

        self.session.add(existing)
        await self.session.flush()
        await self.session.refresh(existing)
        return self.mapper.to_domain(existing)


class PostgreSQLMagicLinkRepository(MagicLinkRepository):
    """PostgreSQL magic link repository implementation."""

    def __init__(self, session: AsyncSession, mapper: MagicLinkMapper):
        self.session = session
        self.mapper = mapper
        self.logger = logger

    async def get_by_id(self, magic_link_id: str) -> MagicLink | None:
        statement = select(MagicLinkModel).where(MagicLinkModel.id == magic_link_id)
        result = await self.session.execute(statement)
        model = result.scalar_one_or_none()
        return self.mapper.to_domain(model) if model else None

    async def get_by_token(self, token: str) -> MagicLink | None:
        statement = select(MagicLinkModel).where(MagicLinkModel.token == token)
        result = await self.session.execute(statement)
        model = result.scalar_one_or_none()
        return self.mapper.to_domain(model) if model else None

    async def invalidate_all_for_email(self, email: str) -> int:
        statement = select(MagicLinkModel).where(
            MagicLinkModel.email == email,
            col(MagicLinkModel.is_used).is_(False),
        )
        result = await self.session.execute(statement)
        models = result.scalars().all()

        now = utc_now()
        for model in models:
            model.is_used = True
            model.used_at = now
            self.session.add(model)

        await self.session.flush()
        return len(models)

    async def delete_all_for_email(self, email: str) -> int:
        statement = delete(MagicLinkModel).where(MagicLinkModel.email == email)
        result = await self.session.execute(statement)
        await self.session.flush()
        return result.rowcount or 0

    async def create(self, magic_link: MagicLink) -> MagicLink:
        model = self.mapper.to_model(magic_link)
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return self.mapper.to_domain(model)

    async def update(self, magic_link: MagicLink) -> MagicLink:
        statement = select(MagicLinkModel).where(MagicLinkModel.id == magic_link.id)
        result = await self.session.execute(statement)
        existing = result.scalar_one_or_none()
        if not existing:
            raise ValueError(f"MagicLink with id {magic_link.id} not found")

        existing.is_used = magic_link.is_used
        existing.used_at = magic_link.used_at
        existing.updated_at = magic_link.updated_at

        self.session.add(existing)
        await self.session.flush()
        await self.session.refresh(existing)
        return self.mapper.to_domain(existing)
