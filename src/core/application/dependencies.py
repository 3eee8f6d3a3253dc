"""Core application dependencies.

These functions define application-level dependency boundaries and are overridden
by infrastructure in `main.py`.
"""

from __future__ import annotations

from typing import NoReturn

from fastapi import Depends

from src.core.domain.ports.cipher import SecretCipher
from src.core.domain.ports.kv import KVClient
from src.core.infrastructure.cache.scoped_cache import ScopedCache
from src.core.infrastructure.redis.rate_limiter import RateLimiter


def _missing_dependency(name: str) -> NoReturn:
    raise RuntimeError(f"Missing dependency override for {name}")


async def get_kv_client() -> KVClient:
    _missing_dependency("KVClient")


async def get_secret_cipher() -> SecretCipher:
    _missing_dependency("SecretCipher")


async def get_rate_limiter(kv: KVClient = Depends(get_kv_client)) -> RateLimiter:
    return RateLimiter(kv)


async def get_scoped_cache(kv: KVClient = Depends(get_kv_client)) -> ScopedCache:
    return ScopedCache(kv)
