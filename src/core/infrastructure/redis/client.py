"""Redis 客户端封装。

提供统一的 Redis 访问接口，支持：
- 延迟初始化连接（带读写/连接超时）
- 健康检查
- 限流与缓存需要的常用操作封装
"""

from __future__ import annotations

import json
from datetime import timedelta
from typing import TYPE_CHECKING, Any

import redis.asyncio as aioredis
from loguru import logger
from redis.exceptions import RedisError

if TYPE_CHECKING:
    from redis.asyncio import Redis

from src.core.config import settings
from src.core.infrastructure.health import HealthStatus, RedisHealthResult


class RedisClient:
    """Redis 客户端封装类。"""

    def __init__(self, url: str | None = None):
        """初始化 Redis 客户端。

        Args:
            url: Redis 连接 URL，默认使用配置中的 REDIS_URL
        """
        self._url = url or settings.REDIS_URL
        self._client: Redis | None = None

    @property
    def client(self) -> Redis:
        """获取 Redis 客户端实例（延迟初始化）。"""
        if self._client is None:
            self._client = aioredis.from_url(
                self._url,
                encoding="utf-8",
                decode_responses=True,
                socket_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
                socket_connect_timeout=settings.REDIS_CONNECT_TIMEOUT_SECONDS,
            )
        return self._client

    async def close(self) -> None:
        """关闭 Redis 连接。"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def ping(self) -> bool:
        """检查 Redis 连接是否正常。"""
        try:
            return await self.client.ping()
        except (RedisError, OSError) as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    async def health_check(self) -> RedisHealthResult:
        """执行 Redis 健康检查。

        Returns:
            RedisHealthResult: 健康检查结果
        """
        try:
            is_connected = await self.ping()
            info = await self.client.info("server") if is_connected else {}
            return RedisHealthResult(
                status=HealthStatus.OK if is_connected else HealthStatus.ERROR,
                connected=is_connected,
                version=info.get("redis_version", "unknown"),
            )
        except (RedisError, OSError) as e:
            return RedisHealthResult(
                status=HealthStatus.ERROR,
                connected=False,
                error=str(e),
            )

    # ============ 缓存操作 ============

    async def get(self, key: str) -> str | None:
        """获取字符串值。"""
        return await self.client.get(key)

    async def set(
        self,
        key: str,
        value: str,
        ex: int | timedelta | None = None,
        nx: bool = False,
    ) -> bool:
        """设置字符串值。

        Args:
            key: 键名
            value: 值
            ex: 过期时间（秒或 timedelta）
            nx: 仅当键不存在时设置

        Returns:
            设置成功返回 True
        """
        return bool(await self.client.set(key, value, ex=ex, nx=nx))

    async def delete(self, *keys: str) -> int:
        """删除一个或多个键。"""
        if not keys:
            return 0
        return await self.client.delete(*keys)

    async def exists(self, *keys: str) -> int:
        """检查键是否存在。"""
        return await self.client.exists(*keys)

    async def expire(self, key: str, seconds: int) -> bool:
        """设置键的过期时间。"""
        return await self.client.expire(key, seconds)

    async def ttl(self, key: str) -> int:
        """获取键的剩余生存时间（秒），-2 表示不存在，-1 表示无过期时间。"""
        return await self.client.ttl(key)

    # ============ JSON 操作 ============

    async def get_json(self, key: str) -> Any | None:
        """获取 JSON 值。"""
        value = await self.get(key)
        if value is None:
            return None
        return json.loads(value)

    async def set_json(
        self,
        key: str,
        value: Any,
        ex: int | timedelta | None = None,
    ) -> bool:
        """设置 JSON 值。"""
        return await self.set(key, json.dumps(value, ensure_ascii=False), ex=ex)

    # ============ 计数器操作 ============

    async def incr(self, key: str, amount: int = 1) -> int:
        """增加计数器。"""
        return await self.client.incrby(key, amount)

    async def incr_with_expiry(self, key: str, seconds: int) -> int:
        """原子地自增计数器，并仅在 key 还没有过期时间时设置过期。

        INCR 与 EXPIRE NX 在同一个 MULTI/EXEC 中执行，窗口不会因为中途崩溃
        而变成永不过期的计数器。

        Returns:
            自增后的计数
        """
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.incr(key)
            pipe.expire(key, seconds, nx=True)
            count, _ = await pipe.execute()
        return int(count)

    # ============ 集合操作 ============

    async def sadd(self, key: str, *members: str) -> int:
        """向集合添加成员。"""
        return await self.client.sadd(key, *members)

    async def smembers(self, key: str) -> set[str]:
        """获取集合所有成员。"""
        return await self.client.smembers(key)


# 全局 Redis 客户端实例
redis_client = RedisClient()


def get_redis_client() -> RedisClient:
    """获取 Redis 客户端依赖。"""
    return redis_client
