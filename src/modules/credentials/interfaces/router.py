"""Redmine credential settings routes."""

from fastapi import APIRouter, Depends

from src.core.application.security import get_current_user_id
from src.core.interfaces.http.response import ApiResponse
from src.modules.credentials.application.dependencies import (
    get_credential_settings_service,
)
from src.modules.credentials.application.services import CredentialSettingsService
from src.modules.credentials.interfaces.schemas import (
    CredentialStatusResponse,
    DeleteCredentialResponse,
    SaveCredentialRequest,
)

router = APIRouter(prefix="/redmine/credentials", tags=["credentials"])


@router.get(
    "",
    response_model=ApiResponse[CredentialStatusResponse],
    summary="获取 Redmine 凭据状态",
)
async def get_credential_status(
    user_id: str = Depends(get_current_user_id),
    service: CredentialSettingsService = Depends(get_credential_settings_service),
) -> ApiResponse[CredentialStatusResponse]:
    credential = await service.get_status(user_id)
    return ApiResponse.success(
        data=CredentialStatusResponse.from_credential(credential)
    )


@router.put(
    "",
    response_model=ApiResponse[CredentialStatusResponse],
    summary="保存 Redmine 凭据",
    description="先向 Redmine 校验 API Key，通过后加密保存，并清空该用户的缓存",
)
async def save_credential(
    request: SaveCredentialRequest,
    user_id: str = Depends(get_current_user_id),
    service: CredentialSettingsService = Depends(get_credential_settings_service),
) -> ApiResponse[CredentialStatusResponse]:
    credential = await service.save(
        user_id, request.base_url, request.api_key.get_secret_value()
    )
    return ApiResponse.success(
        data=CredentialStatusResponse.from_credential(credential),
        message="Redmine credentials saved",
    )


@router.delete(
    "",
    response_model=ApiResponse[DeleteCredentialResponse],
    summary="删除 Redmine 凭据",
)
async def delete_credential(
    user_id: str = Depends(get_current_user_id),
    service: CredentialSettingsService = Depends(get_credential_settings_service),
) -> ApiResponse[DeleteCredentialResponse]:
    deleted = await service.delete(user_id)
    return ApiResponse.success(data=DeleteCredentialResponse(deleted=deleted))
