"""Credential repository implementation."""

from loguru import logger
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from src.core.domain.base_entity import utc_now
from src.modules.credentials.domain.entities import RedmineCredential
from src.modules.credentials.domain.exceptions import CredentialStorageError
from src.modules.credentials.domain.repository import CredentialRepository
from src.modules.credentials.infrastructure.mappers import RedmineCredentialMapper
from src.modules.credentials.infrastructure.models import RedmineCredentialModel

STORE_ERRORS = (SQLAlchemyError, OSError)


class PostgreSQLCredentialRepository(CredentialRepository):
    """PostgreSQL credential repository implementation.

    写操作在返回前显式提交，调用方随后失效缓存时数据已经持久化。
    """

    def __init__(self, session: AsyncSession, mapper: RedmineCredentialMapper):
        self.session = session
        self.mapper = mapper
        self.logger = logger

    async def _get_model(self, user_id: str) -> RedmineCredentialModel | None:
        statement = select(RedmineCredentialModel).where(
            RedmineCredentialModel.user_id == user_id
        )
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_by_user_id(self, user_id: str) -> RedmineCredential | None:
        try:
            model = await self._get_model(user_id)
        except STORE_ERRORS as e:
            self.logger.error(f"Failed to load credential for user {user_id}: {e}")
            raise CredentialStorageError("fetch") from e
        return self.mapper.to_domain(model) if model else None

    async def upsert(self, credential: RedmineCredential) -> RedmineCredential:
        try:
            try:
                model = await self._write(credential)
            except IntegrityError:
                # 并发插入同一 user_id，回滚后按更新重试一次
                await self.session.rollback()
                model = await self._write(credential)
            await self.session.commit()
            await self.session.refresh(model)
        except STORE_ERRORS as e:
            await self.session.rollback()
            self.logger.error(
                f"Failed to save credential for user {credential.user_id}: {e}"
            )
            raise CredentialStorageError("save") from e
        return self.mapper.to_domain(model)

    async def _write(self, credential: RedmineCredential) -> RedmineCredentialModel:
        existing = await self._get_model(credential.user_id)
        if existing is None:
            model = self.mapper.to_model(credential)
        else:
            model = existing
            model.base_url = credential.base_url
            model.ciphertext = credential.ciphertext
            model.nonce = credential.nonce
            model.auth_tag = credential.auth_tag
            model.redmine_user_id = credential.redmine_user_id
            model.updated_at = utc_now()

        self.session.add(model)
        await self.session.flush()
        return model

    async def delete_by_user_id(self, user_id: str) -> bool:
        statement = delete(RedmineCredentialModel).where(
            RedmineCredentialModel.user_id == user_id
        )
        try:
            result = await self.session.execute(statement)
            await self.session.commit()
        except STORE_ERRORS as e:
            await self.session.rollback()
            self.logger.error(f"Failed to delete credential for user {user_id}: {e}")
            raise CredentialStorageError("delete") from e
        return result.rowcount > 0
