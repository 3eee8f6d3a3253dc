"""Redmine module application dependencies.

Defines dependency providers for interfaces layer without importing infrastructure.
"""

from typing import NoReturn

from fastapi import Depends

from src.core.application.dependencies import get_scoped_cache
from src.core.infrastructure.cache.scoped_cache import ScopedCache
from src.modules.credentials.application.dependencies import get_credential_vault
from src.modules.credentials.application.vault import CredentialVault
from src.modules.redmine.application.gated_fetcher import CredentialGatedFetcher
from src.modules.redmine.application.services import (
    RedmineQueryService,
    TimeEntryService,
)
from src.modules.redmine.domain.ports import RedmineGatewayFactory, TimeEntryPolicy


def _missing_dependency(name: str) -> NoReturn:
    raise RuntimeError(f"Missing dependency override for {name}")


async def get_redmine_client_factory() -> RedmineGatewayFactory:
    _missing_dependency("RedmineGatewayFactory")


async def get_time_entry_policy() -> TimeEntryPolicy:
    _missing_dependency("TimeEntryPolicy")


async def get_gated_fetcher(
    vault: CredentialVault = Depends(get_credential_vault),
    cache: ScopedCache = Depends(get_scoped_cache),
    client_factory: RedmineGatewayFactory = Depends(get_redmine_client_factory),
) -> CredentialGatedFetcher:
    return CredentialGatedFetcher(vault, cache, client_factory)


async def get_redmine_query_service(
    fetcher: CredentialGatedFetcher = Depends(get_gated_fetcher),
) -> RedmineQueryService:
    return RedmineQueryService(fetcher)


async def get_time_entry_service(
    fetcher: CredentialGatedFetcher = Depends(get_gated_fetcher),
    cache: ScopedCache = Depends(get_scoped_cache),
    policy: TimeEntryPolicy = Depends(get_time_entry_policy),
) -> TimeEntryService:
    return TimeEntryService(fetcher, cache, policy)
