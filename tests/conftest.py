"""
pytest 配置和共享 fixtures。

测试分层：
- unit/: 单元测试（不依赖外部服务，Redis 用内存实现，Redmine 用 httpx.MockTransport）

使用方法：
    # 运行所有测试
    pytest

    # 只运行单元测试
    pytest tests/unit/
"""

from __future__ import annotations

import base64
import json
import math
from datetime import timedelta
from typing import Any

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.core.infrastructure.security.crypto import CryptoBox

# ============================================
# 运行时 Fixtures
# ============================================


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


# ============================================
# 内存 KV 存储
# ============================================


class FakeClock:
    """可手动推进的时钟。"""

    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryKVClient:
    """KVClient 的内存实现，过期时间由 FakeClock 决定。

    unavailable=True 时所有操作抛出 redis ConnectionError，用于验证降级路径。
    """

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.clock = clock or FakeClock()
        self.data: dict[str, Any] = {}
        self.expires_at: dict[str, float] = {}
        self.unavailable = False

    def _check(self) -> None:
        if self.unavailable:
            raise RedisConnectionError("store unavailable")

    def _purge(self, key: str) -> None:
        deadline = self.expires_at.get(key)
        if deadline is not None and deadline <= self.clock():
            self.data.pop(key, None)
            self.expires_at.pop(key, None)

    def _seconds(self, ex: int | timedelta) -> float:
        return ex.total_seconds() if isinstance(ex, timedelta) else float(ex)

    async def get(self, key: str) -> str | None:
        self._check()
        self._purge(key)
        return self.data.get(key)

    async def set(
        self,
        key: str,
        value: str,
        ex: int | timedelta | None = None,
        nx: bool = False,
    ) -> bool:
        self._check()
        self._purge(key)
        if nx and key in self.data:
            return False
        self.data[key] = value
        if ex is not None:
            self.expires_at[key] = self.clock() + self._seconds(ex)
        else:
            self.expires_at.pop(key, None)
        return True

    async def delete(self, *keys: str) -> int:
        self._check()
        removed = 0
        for key in keys:
            self._purge(key)
            if key in self.data:
                removed += 1
            self.data.pop(key, None)
            self.expires_at.pop(key, None)
        return removed

    async def exists(self, *keys: str) -> int:
        self._check()
        count = 0
        for key in keys:
            self._purge(key)
            count += key in self.data
        return count

    async def expire(self, key: str, seconds: int) -> bool:
        self._check()
        self._purge(key)
        if key not in self.data:
            return False
        self.expires_at[key] = self.clock() + seconds
        return True

    async def ttl(self, key: str) -> int:
        self._check()
        self._purge(key)
        if key not in self.data:
            return -2
        if key not in self.expires_at:
            return -1
        return math.ceil(self.expires_at[key] - self.clock())

    async def get_json(self, key: str) -> Any | None:
        value = await self.get(key)
        return None if value is None else json.loads(value)

    async def set_json(
        self,
        key: str,
        value: Any,
        ex: int | timedelta | None = None,
    ) -> bool:
        return await self.set(key, json.dumps(value), ex=ex)

    async def incr(self, key: str, amount: int = 1) -> int:
        self._check()
        self._purge(key)
        value = int(self.data.get(key, 0)) + amount
        self.data[key] = str(value)
        return value

    async def incr_with_expiry(self, key: str, seconds: int) -> int:
        count = await self.incr(key)
        if key not in self.expires_at:
            self.expires_at[key] = self.clock() + seconds
        return count

    async def sadd(self, key: str, *members: str) -> int:
        self._check()
        self._purge(key)
        members_set = self.data.setdefault(key, set())
        before = len(members_set)
        members_set.update(members)
        return len(members_set) - before

    async def smembers(self, key: str) -> set[str]:
        self._check()
        self._purge(key)
        return set(self.data.get(key, set()))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def kv(clock: FakeClock) -> InMemoryKVClient:
    return InMemoryKVClient(clock)


# ============================================
# 加密 Fixtures
# ============================================


@pytest.fixture
def crypto_key_b64() -> str:
    return base64.b64encode(bytes(range(32))).decode("ascii")


@pytest.fixture
def crypto_box(crypto_key_b64: str) -> CryptoBox:
    return CryptoBox.from_base64(crypto_key_b64)
