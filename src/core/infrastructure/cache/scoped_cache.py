"""按用户隔离的 Redmine 响应缓存。

缓存 key 由 {operation, user_id, base_url} 组成，同一个 Redmine 实例上的两个
用户永远不会共享条目。每个条目带 tag：
- {operation}:{user_id}
- user:{user_id}（凭据变更时整体失效）
- 调用方追加的业务 tag（如 time_entries:{user_id}）

tag 对应一个索引集合和一个版本号。失效时先自增版本号再删除索引里的 key，
正在进行中的 fetch 在写回前后各比对一次版本号，发现变化就放弃或撤销写入，避免把失效前
读到的旧数据写回缓存。
"""

import time
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

from fastapi import status
from loguru import logger
from redis.exceptions import RedisError

from src.core.domain.exceptions import DomainException
from src.core.domain.ports.kv import KVClient
from src.core.infrastructure.logging import BusinessEvents
from src.core.infrastructure.redis.keys import RedisKeys

T = TypeVar("T")

STORE_ERRORS = (RedisError, OSError)


class CacheUnavailableError(DomainException):
    """Raised when a cache invalidation could not be applied."""

    http_status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "CACHE_UNAVAILABLE"

    def __init__(self, tag: str) -> None:
        super().__init__(f"Cache invalidation for '{tag}' could not be applied")


def user_tag(user_id: str) -> str:
    return f"user:{user_id}"


def operation_tag(operation: str, user_id: str) -> str:
    return f"{operation}:{user_id}"


class ScopedCache:
    """Read-through cache with per-user keys and tag invalidation."""

    def __init__(self, kv: KVClient, clock: Callable[[], float] = time.time):
        self.kv = kv
        self.clock = clock

    def wrap(
        self,
        operation: str,
        user_id: str,
        base_url: str,
        ttl_seconds: int,
        fetch_fn: Callable[[], Awaitable[T]],
        tags: Iterable[str] = (),
    ) -> Callable[[], Awaitable[T]]:
        """返回一个带缓存的无参协程函数。

        Args:
            operation: 操作名，作为 key 和 tag 的一部分
            user_id: 已认证用户 ID
            base_url: 规范化后的 Redmine 地址
            ttl_seconds: 条目存活时间
            fetch_fn: 缓存未命中时调用的函数
            tags: 额外的业务 tag
        """
        key = RedisKeys.cache(operation, user_id, base_url)
        entry_tags = [operation_tag(operation, user_id), user_tag(user_id), *tags]

        async def cached_call() -> T:
            return await self._get_or_fetch(key, entry_tags, ttl_seconds, fetch_fn)

        return cached_call

    async def _get_or_fetch(
        self,
        key: str,
        entry_tags: list[str],
        ttl_seconds: int,
        fetch_fn: Callable[[], Awaitable[T]],
    ) -> T:
        try:
            entry = await self._read_entry(key)
            versions = await self._tag_versions(entry_tags)
        except STORE_ERRORS as e:
            logger.warning(f"Cache read failed for {key}, calling through: {e}")
            BusinessEvents.feature_degraded(
                feature="scoped_cache", reason="store_unavailable"
            )
            return await fetch_fn()

        now = self.clock()
        if isinstance(entry, dict) and entry.get("expires_at", 0) > now:
            return entry["value"]

        # 取消或异常直接向上抛出，不会写入任何条目
        value = await fetch_fn()

        try:
            if await self._tag_versions(entry_tags) != versions:
                logger.debug(f"Tag invalidated during fetch, not caching {key}")
                return value
            await self._store(key, entry_tags, ttl_seconds, value)
            # 写入期间发生的失效找不到这个 key，写完后再比对一次
            if await self._tag_versions(entry_tags) != versions:
                logger.debug(f"Tag invalidated during write, dropping {key}")
                await self.kv.delete(key)
        except STORE_ERRORS as e:
            logger.warning(f"Cache write failed for {key}: {e}")
        return value

    async def _read_entry(self, key: str) -> Any | None:
        try:
            return await self.kv.get_json(key)
        except ValueError as e:
            logger.warning(f"Corrupt cache entry at {key}, treating as miss: {e}")
            return None

    async def _store(
        self, key: str, entry_tags: list[str], ttl_seconds: int, value: Any
    ) -> None:
        entry = {
            "value": value,
            "expires_at": self.clock() + ttl_seconds,
            "tags": entry_tags,
        }
        await self.kv.set_json(key, entry, ex=ttl_seconds)
        for tag in entry_tags:
            index_key = RedisKeys.cache_tag(tag)
            await self.kv.sadd(index_key, key)
            # 索引的存活时间不短于其中最长的条目
            if await self.kv.ttl(index_key) < ttl_seconds:
                await self.kv.expire(index_key, ttl_seconds)

    async def _tag_versions(self, entry_tags: list[str]) -> list[str | None]:
        return [
            await self.kv.get(RedisKeys.cache_tag_version(tag)) for tag in entry_tags
        ]

    async def invalidate_tag(self, tag: str) -> int:
        """立即清除带有该 tag 的所有条目。

        Returns:
            删除的条目数

        Raises:
            CacheUnavailableError: Redis 不可用，失效未生效
        """
        index_key = RedisKeys.cache_tag(tag)
        try:
            await self.kv.incr(RedisKeys.cache_tag_version(tag))
            keys = sorted(await self.kv.smembers(index_key))
            removed = await self.kv.delete(*keys) if keys else 0
            await self.kv.delete(index_key)
        except STORE_ERRORS as e:
            logger.error(f"Cache invalidation failed for tag {tag}: {e}")
            raise CacheUnavailableError(tag) from e

        BusinessEvents.cache_invalidated(tag=tag, keys_removed=removed)
        return removed
