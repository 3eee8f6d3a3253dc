"""User module application dependencies.

Defines dependency providers for interfaces layer without importing infrastructure.
"""

from typing import NoReturn

from fastapi import Depends

from src.core.application.dependencies import get_rate_limiter
from src.core.domain.ports.token import TokenService
from src.core.infrastructure.redis.rate_limiter import RateLimiter
from src.modules.users.application.handlers import (
    ClearAccountDataHandler,
    ConsumeMagicLinkHandler,
    RequestMagicLinkHandler,
    UpdatePreferencesHandler,
)
from src.modules.users.application.query_service import UserQueryService
from src.modules.users.domain.ports import AccountDataEraser, MagicLinkSender
from src.modules.users.domain.repository import MagicLinkRepository, UserRepository


def _missing_dependency(name: str) -> NoReturn:
    raise RuntimeError(f"Missing dependency override for {name}")


async def get_user_repository() -> UserRepository:
    _missing_dependency("UserRepository")


async def get_magic_link_repository() -> MagicLinkRepository:
    _missing_dependency("MagicLinkRepository")


async def get_token_service() -> TokenService:
    _missing_dependency("TokenService")


async def get_magic_link_sender() -> MagicLinkSender:
    _missing_dependency("MagicLinkSender")


async def get_account_data_eraser() -> AccountDataEraser:
    _missing_dependency("AccountDataEraser")


async def get_request_magic_link_handler(
    user_repository: UserRepository = Depends(get_user_repository),
    magic_link_repository: MagicLinkRepository = Depends(get_magic_link_repository),
    token_service: TokenService = Depends(get_token_service),
    magic_link_sender: MagicLinkSender = Depends(get_magic_link_sender),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
) -> RequestMagicLinkHandler:
    return RequestMagicLinkHandler(
        user_repository,
        magic_link_repository,
        token_service,
        magic_link_sender,
        rate_limiter,
    )


async def get_consume_magic_link_handler(
    user_repository: UserRepository = Depends(get_user_repository),
    magic_link_repository: MagicLinkRepository = Depends(get_magic_link_repository),
    token_service: TokenService = Depends(get_token_service),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
) -> ConsumeMagicLinkHandler:
    return ConsumeMagicLinkHandler(
        user_repository, magic_link_repository, token_service, rate_limiter
    )


async def get_user_query_service(
    user_repository: UserRepository = Depends(get_user_repository),
) -> UserQueryService:
    return UserQueryService(user_repository)


async def get_update_preferences_handler(
    user_repository: UserRepository = Depends(get_user_repository),
) -> UpdatePreferencesHandler:
    return UpdatePreferencesHandler(user_repository)


async def get_clear_account_data_handler(
    user_repository: UserRepository = Depends(get_user_repository),
    magic_link_repository: MagicLinkRepository = Depends(get_magic_link_repository),
    account_data_eraser: AccountDataEraser = Depends(get_account_data_eraser),
) -> ClearAccountDataHandler:
    return ClearAccountDataHandler(
        user_repository, magic_link_repository, account_data_eraser
    )
