"""User domain entities."""

from datetime import datetime

from pydantic import EmailStr, Field

from src.core.domain.base_entity import BaseEntity, utc_now


class User(BaseEntity):
    """User account, identified by email."""

    email: EmailStr = Field(..., description="用户邮箱")
    is_active: bool = Field(default=True, description="是否激活")
    last_login_at: datetime | None = Field(default=None, description="最后登录时间")
    display_name: str | None = Field(default=None, description="显示名称")
    require_issue: bool = Field(
        default=False, description="录入工时时是否必须关联 Issue"
    )

    def update_last_login(self) -> None:
        """Update last login timestamp."""
        self.last_login_at = utc_now()
        self._update_timestamp()

    def update_preferences(self, require_issue: bool) -> None:
        self.require_issue = require_issue
        self._update_timestamp()


class MagicLink(BaseEntity):
    """Magic link for passwordless authentication."""

    email: EmailStr = Field(..., description="目标邮箱")
    token: str = Field(..., description="Magic link token")
    expires_at: datetime = Field(..., description="过期时间")
    is_used: bool = Field(default=False, description="是否已使用")
    used_at: datetime | None = Field(default=None, description="使用时间")

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or utc_now()) >= self.expires_at

    def mark_as_used(self) -> None:
        """Mark the magic link as used."""
        self.is_used = True
        self.used_at = utc_now()
        self._update_timestamp()
