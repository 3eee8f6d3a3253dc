"""Redis Key 命名规范。

Redis 用于：
- Magic link 限流：冷却标记 + 固定窗口计数器（身份只以 HMAC 形式出现）
- 按用户隔离的 Redmine 响应缓存及其 tag 索引
"""


class RedisKeys:
    """Redis Key 命名空间管理。"""

    # 冷却标记
    # cooldown:{identity_hash}
    COOLDOWN_PREFIX = "cooldown"

    # 固定窗口计数器
    # ratelimit:{identity_hash}
    RATE_LIMIT_PREFIX = "ratelimit"

    # 缓存条目
    # cache:{operation}:{user_id}:{base_url}
    CACHE_PREFIX = "cache"

    # tag -> 缓存 key 集合
    # cache:tag:{tag}
    CACHE_TAG_PREFIX = "cache:tag"

    # tag 版本号，失效时自增
    # cache:tagver:{tag}
    CACHE_TAG_VERSION_PREFIX = "cache:tagver"

    # 健康检查
    HEALTH_CHECK_KEY = "health:ping"

    @classmethod
    def cooldown(cls, identity_hash: str) -> str:
        """生成冷却标记 key。

        Args:
            identity_hash: 身份的 HMAC 十六进制摘要

        Returns:
            格式化的 Redis key
        """
        return f"{cls.COOLDOWN_PREFIX}:{identity_hash}"

    @classmethod
    def rate_limit(cls, identity_hash: str) -> str:
        """生成窗口计数器 key。"""
        return f"{cls.RATE_LIMIT_PREFIX}:{identity_hash}"

    @classmethod
    def cache(cls, operation: str, user_id: str, base_url: str) -> str:
        """生成缓存条目 key。

        Args:
            operation: 操作名（如 projects, issues:12）
            user_id: 已认证用户 ID
            base_url: 规范化后的 Redmine 地址

        Returns:
            格式化的 Redis key
        """
        return f"{cls.CACHE_PREFIX}:{operation}:{user_id}:{base_url}"

    @classmethod
    def cache_tag(cls, tag: str) -> str:
        """生成 tag 索引集合 key。"""
        return f"{cls.CACHE_TAG_PREFIX}:{tag}"

    @classmethod
    def cache_tag_version(cls, tag: str) -> str:
        """生成 tag 版本号 key。"""
        return f"{cls.CACHE_TAG_VERSION_PREFIX}:{tag}"
