"""User API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RequestMagicLinkRequest(BaseModel):
    """Request magic link."""

    model_config = ConfigDict(
        json_schema_extra={"example": {"email": "user@example.com"}}
    )

    email: EmailStr = Field(..., description="邮箱地址")


class MagicLinkResponse(BaseModel):
    """Magic link response."""

    ok: bool = True
    message: str = "Login link sent, check your inbox"


class SessionResponse(BaseModel):
    """Session info after successful login."""

    user_id: str = Field(..., description="用户ID")
    email: EmailStr = Field(..., description="用户邮箱")
    access_token: str = Field(..., description="JWT访问令牌")
    expires_at: datetime = Field(..., description="令牌过期时间")


class ConsumeTokenResponse(BaseModel):
    """Response after consuming magic link."""

    ok: bool = True
    session: SessionResponse


class UserResponse(BaseModel):
    """User info response."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="用户ID")
    email: EmailStr = Field(..., description="邮箱")
    is_active: bool = Field(..., description="是否激活")
    display_name: str | None = Field(None, description="显示名称")
    require_issue: bool = Field(False, description="录入工时时是否必须关联 Issue")
    last_login_at: datetime | None = Field(None, description="最后登录时间")
    created_at: datetime = Field(..., description="创建时间")


class PreferencesResponse(BaseModel):
    """Time entry preferences."""

    model_config = ConfigDict(from_attributes=True)

    require_issue: bool = Field(..., description="录入工时时是否必须关联 Issue")


class UpdatePreferencesRequest(BaseModel):
    """Update time entry preferences."""

    model_config = ConfigDict(json_schema_extra={"example": {"require_issue": True}})

    require_issue: bool = Field(..., description="录入工时时是否必须关联 Issue")


class ClearAccountResponse(BaseModel):
    """Result of clearing the account data."""

    ok: bool = True
    credentials_deleted: bool = Field(..., description="是否删除了 Redmine 凭据")
    magic_links_removed: int = Field(..., description="删除的 Magic link 数量")
    logged_out: bool = True
    message: str = "All data cleared and logged out"
