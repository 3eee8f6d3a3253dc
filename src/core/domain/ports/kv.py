"""Key-value store port.

限流器和按用户隔离的缓存只依赖这个协议，生产环境由 RedisClient 实现，
单元测试使用内存实现。
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Protocol


class KVClient(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(
        self,
        key: str,
        value: str,
        ex: int | timedelta | None = None,
        nx: bool = False,
    ) -> bool: ...

    async def delete(self, *keys: str) -> int: ...

    async def exists(self, *keys: str) -> int: ...

    async def expire(self, key: str, seconds: int) -> bool: ...

    async def ttl(self, key: str) -> int: ...

    async def get_json(self, key: str) -> Any | None: ...

    async def set_json(
        self,
        key: str,
        value: Any,
        ex: int | timedelta | None = None,
    ) -> bool: ...

    async def incr(self, key: str, amount: int = 1) -> int: ...

    async def incr_with_expiry(self, key: str, seconds: int) -> int: ...

    async def sadd(self, key: str, *members: str) -> int: ...

    async def smembers(self, key: str) -> set[str]: ...
