"""Credential settings service."""

from src.core.infrastructure.cache.scoped_cache import ScopedCache, user_tag
from src.core.infrastructure.logging import BusinessEvents
from src.modules.credentials.application.vault import CredentialVault
from src.modules.credentials.domain.entities import RedmineCredential


class CredentialSettingsService:
    """用户设置页的凭据读写，写入后立即失效该用户的全部缓存。"""

    def __init__(self, vault: CredentialVault, cache: ScopedCache):
        self.vault = vault
        self.cache = cache

    async def get_status(self, user_id: str) -> RedmineCredential | None:
        return await self.vault.fetch(user_id)

    async def save(
        self, user_id: str, base_url: str, api_key: str
    ) -> RedmineCredential:
        credential = await self.vault.save(user_id, base_url, api_key)
        await self.cache.invalidate_tag(user_tag(user_id))
        BusinessEvents.credential_saved(user_id=user_id, base_url=credential.base_url)
        return credential

    async def delete(self, user_id: str) -> bool:
        existed = await self.vault.delete(user_id)
        await self.cache.invalidate_tag(user_tag(user_id))
        BusinessEvents.credential_deleted(user_id=user_id, existed=existed)
        return existed
