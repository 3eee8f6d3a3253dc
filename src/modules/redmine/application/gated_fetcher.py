"""Credential-gated access to Redmine.

每次调用依次经过：
1. 未登录 → AuthenticationRequiredError（不会退化为匿名访问）
2. 未配置凭据 → GatedResult.not_configured()
3. 解密失败 → 删除凭据、失效该用户缓存 → GatedResult.credentials_reset()
4. 否则通过 ScopedCache（读）或直接（写）调用 Redmine

传给缓存的闭包只捕获 base_url 和解密后的 API Key，不持有仓储或会话。
"""

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from loguru import logger

from src.core.domain.exceptions import AuthenticationRequiredError
from src.core.infrastructure.cache.scoped_cache import (
    CacheUnavailableError,
    ScopedCache,
    user_tag,
)
from src.modules.credentials.application.vault import CredentialVault
from src.modules.credentials.domain.entities import DecryptedCredential
from src.modules.credentials.domain.exceptions import CredentialDecryptionError
from src.modules.redmine.domain.ports import RedmineGateway, RedmineGatewayFactory

T = TypeVar("T")

# call(gateway, redmine_user_id)
GatedCall = Callable[[RedmineGateway, str], Awaitable[T]]


class GatedStatus(str, Enum):
    OK = "ok"
    NOT_CONFIGURED = "not_configured"
    CREDENTIALS_RESET = "credentials_reset"


@dataclass(frozen=True)
class GatedResult(Generic[T]):
    status: GatedStatus
    data: T | None = None

    @classmethod
    def ok(cls, data: T) -> "GatedResult[T]":
        return cls(GatedStatus.OK, data)

    @classmethod
    def not_configured(cls) -> "GatedResult[T]":
        return cls(GatedStatus.NOT_CONFIGURED)

    @classmethod
    def credentials_reset(cls) -> "GatedResult[T]":
        return cls(GatedStatus.CREDENTIALS_RESET)

    @property
    def is_ok(self) -> bool:
        return self.status is GatedStatus.OK


class CredentialGatedFetcher:
    """Runs Redmine calls on behalf of an authenticated user."""

    def __init__(
        self,
        vault: CredentialVault,
        cache: ScopedCache,
        client_factory: RedmineGatewayFactory,
    ):
        self.vault = vault
        self.cache = cache
        self.client_factory = client_factory

    async def fetch_cached(
        self,
        user_id: str | None,
        operation: str,
        ttl_seconds: int,
        call: GatedCall[T],
        tags: Iterable[str] = (),
    ) -> GatedResult[T]:
        """读操作：结果按 {operation, user_id, base_url} 缓存。

        Raises:
            AuthenticationRequiredError: 未登录
            RedmineApiError: Redmine 调用失败
        """
        credential, gated = await self._resolve(user_id)
        if credential is None:
            return gated

        cached_call = self.cache.wrap(
            operation,
            user_id,
            credential.base_url,
            ttl_seconds,
            self._bind(credential, call),
            tags=tags,
        )
        return GatedResult.ok(await cached_call())

    async def fetch_uncached(
        self, user_id: str | None, call: GatedCall[T]
    ) -> GatedResult[T]:
        """写操作：不经过缓存，调用方负责写入后的失效。"""
        credential, gated = await self._resolve(user_id)
        if credential is None:
            return gated
        return GatedResult.ok(await self._bind(credential, call)())

    async def _resolve(
        self, user_id: str | None
    ) -> tuple[DecryptedCredential | None, GatedResult]:
        if not user_id:
            raise AuthenticationRequiredError()

        try:
            credential = await self.vault.fetch_decrypted(user_id)
        except CredentialDecryptionError:
            await self._heal(user_id)
            return None, GatedResult.credentials_reset()

        if credential is None:
            return None, GatedResult.not_configured()
        return credential, GatedResult.ok(None)

    async def _heal(self, user_id: str) -> None:
        await self.vault.self_heal(user_id)
        try:
            await self.cache.invalidate_tag(user_tag(user_id))
        except CacheUnavailableError:
            # 凭据已删除，旧缓存条目最多再存活一个 TTL
            logger.warning(f"Cache not invalidated after self-heal for user {user_id}")

    def _bind(
        self, credential: DecryptedCredential, call: GatedCall[T]
    ) -> Callable[[], Awaitable[T]]:
        base_url = credential.base_url
        api_key = credential.api_key
        redmine_user_id = credential.redmine_user_id
        client_factory = self.client_factory

        async def bound() -> T:
            return await call(client_factory(base_url, api_key), redmine_user_id)

        return bound
