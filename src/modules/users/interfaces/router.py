"""User API routes."""

from datetime import UTC, datetime, timedelta

from fastapi import APIRouter, Depends, Query, status

from src.core.application.security import get_current_user_id
from src.core.config import settings
from src.core.interfaces.http.response import ApiResponse
from src.modules.users.application.commands import (
    ClearAccountDataCommand,
    ConsumeMagicLinkCommand,
    RequestMagicLinkCommand,
    UpdatePreferencesCommand,
)
from src.modules.users.application.dependencies import (
    get_clear_account_data_handler,
    get_consume_magic_link_handler,
    get_request_magic_link_handler,
    get_update_preferences_handler,
    get_user_query_service,
)
from src.modules.users.application.handlers import (
    ClearAccountDataHandler,
    ConsumeMagicLinkHandler,
    RequestMagicLinkHandler,
    UpdatePreferencesHandler,
)
from src.modules.users.application.query_service import UserQueryService
from src.modules.users.interfaces.schemas import (
    ClearAccountResponse,
    ConsumeTokenResponse,
    MagicLinkResponse,
    PreferencesResponse,
    RequestMagicLinkRequest,
    SessionResponse,
    UpdatePreferencesRequest,
    UserResponse,
)

router = APIRouter(tags=["auth"])


@router.post(
    "/auth/request_link",
    response_model=ApiResponse[MagicLinkResponse],
    status_code=status.HTTP_200_OK,
    summary="请求 Magic Link",
    description="发送 Magic Link 到用户邮箱用于登录，按邮箱限流",
)
async def request_magic_link(
    request: RequestMagicLinkRequest,
    handler: RequestMagicLinkHandler = Depends(get_request_magic_link_handler),
) -> ApiResponse[MagicLinkResponse]:
    """Request magic link for login."""
    await handler.handle(RequestMagicLinkCommand(email=request.email))

    response = MagicLinkResponse()
    return ApiResponse.success(data=response, message=response.message)


@router.get(
    "/auth/consume",
    response_model=ApiResponse[ConsumeTokenResponse],
    status_code=status.HTTP_200_OK,
    summary="消费 Magic Link",
    description="使用 Magic Link Token 完成登录",
)
async def consume_magic_link(
    token: str = Query(..., description="Magic link token"),
    handler: ConsumeMagicLinkHandler = Depends(get_consume_magic_link_handler),
) -> ApiResponse[ConsumeTokenResponse]:
    """Consume magic link and complete login."""
    user, access_token = await handler.handle(ConsumeMagicLinkCommand(token=token))

    expires_at = datetime.now(UTC) + timedelta(
        minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    response_body = ConsumeTokenResponse(
        session=SessionResponse(
            user_id=user.id,
            email=user.email,
            access_token=access_token,
            expires_at=expires_at,
        )
    )
    return ApiResponse.success(data=response_body)


@router.get(
    "/users/me",
    response_model=ApiResponse[UserResponse],
    summary="获取当前用户信息",
)
async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    service: UserQueryService = Depends(get_user_query_service),
) -> ApiResponse[UserResponse]:
    """Get current user info."""
    user = await service.get_current_user(user_id=user_id)
    return ApiResponse.success(data=UserResponse.model_validate(user))


@router.get(
    "/users/me/preferences",
    response_model=ApiResponse[PreferencesResponse],
    summary="获取工时录入偏好",
)
async def get_preferences(
    user_id: str = Depends(get_current_user_id),
    service: UserQueryService = Depends(get_user_query_service),
) -> ApiResponse[PreferencesResponse]:
    user = await service.get_current_user(user_id=user_id)
    return ApiResponse.success(data=PreferencesResponse.model_validate(user))


@router.put(
    "/users/me/preferences",
    response_model=ApiResponse[PreferencesResponse],
    summary="更新工时录入偏好",
    description="require_issue 为 true 时，批量录入中缺少 issue_id 的条目会被整体拒绝",
)
async def update_preferences(
    request: UpdatePreferencesRequest,
    user_id: str = Depends(get_current_user_id),
    handler: UpdatePreferencesHandler = Depends(get_update_preferences_handler),
) -> ApiResponse[PreferencesResponse]:
    user = await handler.handle(
        UpdatePreferencesCommand(user_id=user_id, require_issue=request.require_issue)
    )
    return ApiResponse.success(data=PreferencesResponse.model_validate(user))


@router.delete(
    "/users/me/data",
    response_model=ApiResponse[ClearAccountResponse],
    summary="清除账户数据",
    description="删除 Redmine 凭据与全部 Magic link，客户端随后丢弃访问令牌",
)
async def clear_account_data(
    user_id: str = Depends(get_current_user_id),
    handler: ClearAccountDataHandler = Depends(get_clear_account_data_handler),
) -> ApiResponse[ClearAccountResponse]:
    """Clear stored data and log out."""
    result = await handler.handle(ClearAccountDataCommand(user_id=user_id))
    response = ClearAccountResponse(
        credentials_deleted=result.credentials_deleted,
        magic_links_removed=result.magic_links_removed,
    )
    return ApiResponse.success(data=response, message=response.message)
