"""User command handlers."""

from dataclasses import dataclass
from datetime import timedelta

from loguru import logger

from src.core.config import settings
from src.core.domain.base_entity import utc_now
from src.core.domain.ports.token import TokenService
from src.core.infrastructure.logging import BusinessEvents
from src.core.infrastructure.redis.rate_limiter import RateLimiter
from src.modules.users.application.commands import (
    ClearAccountDataCommand,
    ConsumeMagicLinkCommand,
    RequestMagicLinkCommand,
    UpdatePreferencesCommand,
)
from src.modules.users.domain.entities import MagicLink, User
from src.modules.users.domain.exceptions import (
    InvalidMagicLinkError,
    MagicLinkAlreadyUsedError,
    MagicLinkExpiredError,
    MagicLinkRateLimitedError,
    UserNotFoundError,
)
from src.modules.users.domain.ports import AccountDataEraser, MagicLinkSender
from src.modules.users.domain.repository import MagicLinkRepository, UserRepository


def build_login_url(token: str) -> str:
    return f"{settings.FRONTEND_HOST}/auth/callback?token={token}"


class RequestMagicLinkHandler:
    """Handle magic link request."""

    def __init__(
        self,
        user_repository: UserRepository,
        magic_link_repository: MagicLinkRepository,
        token_service: TokenService,
        magic_link_sender: MagicLinkSender,
        rate_limiter: RateLimiter,
    ):
        self.user_repository = user_repository
        self.magic_link_repository = magic_link_repository
        self.token_service = token_service
        self.magic_link_sender = magic_link_sender
        self.rate_limiter = rate_limiter
        self.logger = logger

    async def handle(self, command: RequestMagicLinkCommand) -> MagicLink:
        """Handle magic link request.

        限流检查在任何写操作之前；冷却只在邮件成功发出之后才设置，
        发送失败时用户可以立即重试（仍受窗口配额约束）。
        """
        email = str(command.email)
        identity_hash = self.rate_limiter.identity_hash(email)

        decision = await self.rate_limiter.check_and_reserve(email)
        if not decision.allowed:
            reason = decision.reason.value if decision.reason else "rate_limit"
            retry_after = decision.retry_after_seconds or 0
            BusinessEvents.magic_link_rate_limited(
                identity_hash=identity_hash,
                reason=reason,
                retry_after_seconds=retry_after,
            )
            raise MagicLinkRateLimitedError(reason, retry_after)

        user = await self.user_repository.get_by_email(email)
        if not user:
            user = await self.user_repository.create(User(email=email))
            self.logger.info(f"Created new user: {user.id}")

        await self.magic_link_repository.invalidate_all_for_email(email)

        token = self.token_service.create_magic_link_token(email)
        magic_link = MagicLink(
            email=email,
            token=token,
            expires_at=utc_now()
            + timedelta(minutes=settings.MAGIC_LINK_EXPIRE_MINUTES),
        )
        await self.magic_link_repository.create(magic_link)

        login_url = build_login_url(token)
        # 本地开发环境：打印登录链接到日志，方便调试
        if settings.ENVIRONMENT == "local":
            self.logger.warning(f"[DEV LOGIN] login link: {login_url}")

        await self.magic_link_sender.send(email, login_url, magic_link.expires_at)
        await self.rate_limiter.commit_cooldown(email)

        BusinessEvents.magic_link_requested(
            identity_hash=identity_hash,
            magic_link_id=magic_link.id,
        )
        return magic_link


class ConsumeMagicLinkHandler:
    """Handle magic link consumption."""

    def __init__(
        self,
        user_repository: UserRepository,
        magic_link_repository: MagicLinkRepository,
        token_service: TokenService,
        rate_limiter: RateLimiter,
    ):
        self.user_repository = user_repository
        self.magic_link_repository = magic_link_repository
        self.token_service = token_service
        self.rate_limiter = rate_limiter
        self.logger = logger

    async def handle(self, command: ConsumeMagicLinkCommand) -> tuple[User, str]:
        """Consume magic link and return user with access token."""
        magic_link = await self.magic_link_repository.get_by_token(command.token)
        if not magic_link:
            self.logger.warning("Magic link not found for token")
            raise InvalidMagicLinkError()

        if magic_link.is_used:
            self.logger.warning(f"Magic link already used: id={magic_link.id}")
            raise MagicLinkAlreadyUsedError()

        if magic_link.is_expired():
            self.logger.warning(
                f"Magic link expired: id={magic_link.id}, "
                f"expires_at={magic_link.expires_at}"
            )
            raise MagicLinkExpiredError()

        user = await self.user_repository.get_by_email(magic_link.email)
        if not user:
            raise UserNotFoundError()

        magic_link.mark_as_used()
        await self.magic_link_repository.update(magic_link)

        user.update_last_login()
        await self.user_repository.update(user)

        # 登录完成，重置该邮箱的冷却与窗口计数
        await self.rate_limiter.clear(magic_link.email)

        access_token = self.token_service.create_access_token(
            subject=user.id,
            extra_claims={"email": user.email},
        )
        BusinessEvents.magic_link_consumed(user_id=user.id)
        return user, access_token


class UpdatePreferencesHandler:
    """Handle time entry preference updates."""

    def __init__(self, user_repository: UserRepository):
        self.user_repository = user_repository

    async def handle(self, command: UpdatePreferencesCommand) -> User:
        user = await self.user_repository.get_by_id(command.user_id)
        if not user:
            raise UserNotFoundError(user_id=command.user_id)

        user.update_preferences(require_issue=command.require_issue)
        user = await self.user_repository.update(user)

        BusinessEvents.preferences_updated(
            user_id=user.id, require_issue=user.require_issue
        )
        return user


@dataclass
class AccountClearResult:
    credentials_deleted: bool
    magic_links_removed: int


class ClearAccountDataHandler:
    """Handle account data removal.

    先删除 Redmine 凭据（同时失效该用户的缓存），再删除该邮箱的全部
    Magic link，之后客户端丢弃访问令牌即视为登出。
    """

    def __init__(
        self,
        user_repository: UserRepository,
        magic_link_repository: MagicLinkRepository,
        account_data_eraser: AccountDataEraser,
    ):
        self.user_repository = user_repository
        self.magic_link_repository = magic_link_repository
        self.account_data_eraser = account_data_eraser
        self.logger = logger

    async def handle(self, command: ClearAccountDataCommand) -> AccountClearResult:
        user = await self.user_repository.get_by_id(command.user_id)
        if not user:
            raise UserNotFoundError(user_id=command.user_id)

        credentials_deleted = await self.account_data_eraser.delete(user.id)
        removed = await self.magic_link_repository.delete_all_for_email(user.email)
        self.logger.info(
            f"Cleared account data: user_id={user.id}, magic_links_removed={removed}"
        )

        BusinessEvents.account_cleared(
            user_id=user.id,
            credentials_deleted=credentials_deleted,
            magic_links_removed=removed,
        )
        return AccountClearResult(
            credentials_deleted=credentials_deleted, magic_links_removed=removed
        )
