"""Logging configuration with structlog integration.

提供两种日志记录方式：
1. loguru: 用于一般调试日志
2. structlog: 用于关键业务事件的结构化日志

业务事件里的用户身份只允许以 HMAC 摘要或内部 user_id 出现，
API Key 之类的明文凭据在渲染前会被统一替换掉。
"""

import sys
from typing import Any

import structlog
from loguru import logger

from src.core.config import settings

REDACTED = "[REDACTED]"
SENSITIVE_FIELDS = frozenset({"api_key", "token", "password", "authorization"})


def setup_logging() -> None:
    """Configure application logging with structlog and loguru."""
    _configure_structlog()
    _configure_loguru()

    logger.info(f"Logging configured with level: {settings.LOG_LEVEL}")


def redact_sensitive_fields(
    _logger: Any, _method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor: 屏蔽敏感字段。"""
    for field in SENSITIVE_FIELDS.intersection(event_dict):
        event_dict[field] = REDACTED
    return event_dict


def _configure_structlog() -> None:
    """配置 structlog 处理器链。"""
    if settings.ENVIRONMENT == "local":
        # 本地开发使用人类可读格式
        renderer = structlog.dev.ConsoleRenderer(colors=True)
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.CallsiteParameterAdder(
                [
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
            redact_sensitive_fields,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            _get_log_level_number(settings.LOG_LEVEL)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def _configure_loguru() -> None:
    """配置 loguru。"""
    logger.remove()

    logger.add(
        sys.stderr,
        level=settings.LOG_LEVEL,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
    )

    if settings.ENVIRONMENT != "local":
        logger.add(
            "logs/timefill_{time:YYYY-MM-DD}.log",
            rotation="00:00",
            retention="30 days",
            level="INFO",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        )


def _get_log_level_number(level: str) -> int:
    """将日志级别字符串转换为数字。"""
    levels = {
        "DEBUG": 10,
        "INFO": 20,
        "WARNING": 30,
        "ERROR": 40,
        "CRITICAL": 50,
    }
    return levels.get(level.upper(), 20)


# ============================================================================
# 业务事件日志记录器
# ============================================================================


class BusinessEvents:
    """业务事件日志助手类。

    提供统一的业务事件日志记录接口，确保事件格式一致。

    Usage:
        from src.core.infrastructure.logging import BusinessEvents

        BusinessEvents.credential_saved(user_id="u1", base_url="https://t.example")
        BusinessEvents.magic_link_rate_limited(identity_hash="9f...", reason="cooldown")
    """

    _log = structlog.get_logger("business.events")

    # ---------- Magic link ----------

    @classmethod
    def magic_link_requested(
        cls,
        identity_hash: str,
        magic_link_id: str,
        **extra: Any,
    ) -> None:
        """记录 Magic link 签发事件。"""
        cls._log.info(
            "magic_link_requested",
            event_type="auth",
            identity_hash=identity_hash,
            magic_link_id=magic_link_id,
            **extra,
        )

    @classmethod
    def magic_link_rate_limited(
        cls,
        identity_hash: str,
        reason: str,
        retry_after_seconds: int,
        **extra: Any,
    ) -> None:
        """记录 Magic link 被限流事件。"""
        cls._log.warning(
            "magic_link_rate_limited",
            event_type="auth",
            identity_hash=identity_hash,
            reason=reason,
            retry_after_seconds=retry_after_seconds,
            **extra,
        )

    @classmethod
    def magic_link_consumed(cls, user_id: str, **extra: Any) -> None:
        """记录 Magic link 登录完成事件。"""
        cls._log.info(
            "magic_link_consumed",
            event_type="auth",
            user_id=user_id,
            **extra,
        )

    @classmethod
    def preferences_updated(
        cls,
        user_id: str,
        require_issue: bool,
        **extra: Any,
    ) -> None:
        """记录用户偏好更新事件。"""
        cls._log.info(
            "preferences_updated",
            event_type="user",
            user_id=user_id,
            require_issue=require_issue,
            **extra,
        )

    @classmethod
    def account_cleared(
        cls,
        user_id: str,
        credentials_deleted: bool,
        magic_links_removed: int,
        **extra: Any,
    ) -> None:
        """记录账户数据清除事件。"""
        cls._log.warning(
            "account_cleared",
            event_type="user",
            user_id=user_id,
            credentials_deleted=credentials_deleted,
            magic_links_removed=magic_links_removed,
            **extra,
        )

    # ---------- Credentials ----------

    @classmethod
    def credential_saved(
        cls,
        user_id: str,
        base_url: str,
        **extra: Any,
    ) -> None:
        """记录 Redmine 凭据保存事件。"""
        cls._log.info(
            "credential_saved",
            event_type="credential",
            user_id=user_id,
            base_url=base_url,
            **extra,
        )

    @classmethod
    def credential_verification_failed(
        cls,
        user_id: str,
        base_url: str,
        reason: str,
        **extra: Any,
    ) -> None:
        """记录 Redmine 凭据校验失败事件。"""
        cls._log.warning(
            "credential_verification_failed",
            event_type="credential",
            user_id=user_id,
            base_url=base_url,
            reason=reason,
            **extra,
        )

    @classmethod
    def credential_self_healed(cls, user_id: str, **extra: Any) -> None:
        """记录解密失败后自动删除凭据的事件。"""
        cls._log.warning(
            "credential_self_healed",
            event_type="credential",
            user_id=user_id,
            **extra,
        )

    @classmethod
    def credential_deleted(cls, user_id: str, existed: bool, **extra: Any) -> None:
        """记录凭据删除事件。"""
        cls._log.info(
            "credential_deleted",
            event_type="credential",
            user_id=user_id,
            existed=existed,
            **extra,
        )

    # ---------- Cache / Redmine ----------

    @classmethod
    def cache_invalidated(cls, tag: str, keys_removed: int, **extra: Any) -> None:
        """记录缓存 tag 失效事件。"""
        cls._log.info(
            "cache_invalidated",
            event_type="cache",
            tag=tag,
            keys_removed=keys_removed,
            **extra,
        )

    @classmethod
    def redmine_request_failed(
        cls,
        method: str,
        path: str,
        kind: str,
        status_code: int | None = None,
        **extra: Any,
    ) -> None:
        """记录 Redmine 请求失败事件。"""
        cls._log.warning(
            "redmine_request_failed",
            event_type="redmine",
            method=method,
            path=path,
            kind=kind,
            status_code=status_code,
            **extra,
        )

    @classmethod
    def time_entries_created(
        cls,
        user_id: str,
        created: int,
        failed: int,
        total_hours: float,
        **extra: Any,
    ) -> None:
        """记录批量工时录入事件。"""
        cls._log.info(
            "time_entries_created",
            event_type="redmine",
            user_id=user_id,
            created=created,
            failed=failed,
            total_hours=round(total_hours, 2),
            **extra,
        )

    @classmethod
    def feature_degraded(
        cls,
        feature: str,
        reason: str,
        **extra: Any,
    ) -> None:
        """记录功能降级事件。"""
        cls._log.warning(
            "feature_degraded",
            event_type="degradation",
            feature=feature,
            reason=reason,
            **extra,
        )
