"""Credential module dependencies."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.infrastructure.database.session import get_db_session
from src.modules.credentials.infrastructure.mappers import RedmineCredentialMapper
from src.modules.credentials.infrastructure.repositories import (
    PostgreSQLCredentialRepository,
)


def get_credential_mapper() -> RedmineCredentialMapper:
    return RedmineCredentialMapper()


async def get_credential_repository(
    session: AsyncSession = Depends(get_db_session),
    mapper: RedmineCredentialMapper = Depends(get_credential_mapper),
) -> PostgreSQLCredentialRepository:
    return PostgreSQLCredentialRepository(session, mapper)
