"""登录链接签发限流。

每个身份（邮箱）同时受两条规则约束：
- 冷却：一次成功签发后 C 秒内不允许再次签发
- 窗口配额：固定窗口 W 秒内最多 Q 次请求

身份在进入 key 空间之前先做 HMAC-SHA256，Redis 中不会出现明文邮箱。
Redis 不可用时放行（fail open），并记录告警与降级事件。
"""

import hashlib
import hmac
from dataclasses import dataclass
from enum import Enum

from loguru import logger
from redis.exceptions import RedisError

from src.core.config import settings
from src.core.domain.ports.kv import KVClient
from src.core.infrastructure.logging import BusinessEvents
from src.core.infrastructure.redis.keys import RedisKeys

STORE_ERRORS = (RedisError, OSError)


class RateLimitReason(str, Enum):
    COOLDOWN = "cooldown"
    RATE_LIMIT = "rate_limit"


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single check."""

    allowed: bool
    reason: RateLimitReason | None = None
    retry_after_seconds: int | None = None

    @classmethod
    def allow(cls) -> "RateLimitDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: RateLimitReason, retry_after: int) -> "RateLimitDecision":
        return cls(allowed=False, reason=reason, retry_after_seconds=retry_after)


def hash_identity(identity: str, secret: str) -> str:
    """HMAC-SHA256 of the normalized (trimmed, lowercased) identity."""
    normalized = identity.strip().lower()
    return hmac.new(
        secret.encode("utf-8"), normalized.encode("utf-8"), hashlib.sha256
    ).hexdigest()


class RateLimiter:
    """Cooldown + fixed-window limiter over a key-value store."""

    def __init__(
        self,
        kv: KVClient,
        hash_secret: str | None = None,
        cooldown_seconds: int | None = None,
        max_per_window: int | None = None,
        window_seconds: int | None = None,
    ):
        self.kv = kv
        self.hash_secret = (
            hash_secret if hash_secret is not None else settings.RATE_LIMIT_HASH_SECRET
        )
        self.cooldown_seconds = (
            cooldown_seconds
            if cooldown_seconds is not None
            else settings.MAGIC_LINK_COOLDOWN_SECONDS
        )
        self.max_per_window = (
            max_per_window
            if max_per_window is not None
            else settings.MAGIC_LINK_MAX_PER_WINDOW
        )
        self.window_seconds = (
            window_seconds
            if window_seconds is not None
            else settings.MAGIC_LINK_WINDOW_SECONDS
        )

    def identity_hash(self, identity: str) -> str:
        return hash_identity(identity, self.hash_secret)

    async def check_and_reserve(self, identity: str) -> RateLimitDecision:
        """检查冷却与窗口配额，放行时占用一次窗口配额。

        冷却命中时不消耗配额。
        """
        identity_hash = self.identity_hash(identity)
        cooldown_key = RedisKeys.cooldown(identity_hash)
        window_key = RedisKeys.rate_limit(identity_hash)

        try:
            if await self.kv.exists(cooldown_key):
                remaining = await self.kv.ttl(cooldown_key)
                retry_after = remaining if remaining > 0 else self.cooldown_seconds
                return RateLimitDecision.deny(RateLimitReason.COOLDOWN, retry_after)

            count = await self.kv.incr_with_expiry(window_key, self.window_seconds)
            if count > self.max_per_window:
                remaining = await self.kv.ttl(window_key)
                retry_after = remaining if remaining > 0 else self.window_seconds
                return RateLimitDecision.deny(RateLimitReason.RATE_LIMIT, retry_after)
        except STORE_ERRORS as e:
            logger.warning(
                f"Rate limiter store unavailable, allowing request "
                f"identity_hash={identity_hash[:12]}: {e}"
            )
            BusinessEvents.feature_degraded(
                feature="magic_link_rate_limit",
                reason="store_unavailable",
                identity_hash=identity_hash,
            )
            return RateLimitDecision.allow()

        return RateLimitDecision.allow()

    async def commit_cooldown(self, identity: str) -> None:
        """在受保护的动作（发送邮件）成功后设置冷却标记。"""
        if self.cooldown_seconds <= 0:
            return
        identity_hash = self.identity_hash(identity)
        try:
            await self.kv.set(
                RedisKeys.cooldown(identity_hash), "1", ex=self.cooldown_seconds
            )
        except STORE_ERRORS as e:
            logger.warning(
                f"Failed to set cooldown identity_hash={identity_hash[:12]}: {e}"
            )

    async def clear(self, identity: str) -> None:
        """登录完成后清除冷却与窗口计数。"""
        identity_hash = self.identity_hash(identity)
        try:
            await self.kv.delete(
                RedisKeys.cooldown(identity_hash),
                RedisKeys.rate_limit(identity_hash),
            )
        except STORE_ERRORS as e:
            logger.warning(
                f"Failed to clear rate limit identity_hash={identity_hash[:12]}: {e}"
            )
