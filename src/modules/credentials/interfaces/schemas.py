"""Credential API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from src.modules.credentials.domain.entities import RedmineCredential


class SaveCredentialRequest(BaseModel):
    """Save Redmine credential."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "base_url": "https://redmine.example.com",
                "api_key": "0123456789abcdef0123456789abcdef01234567",
            }
        }
    )

    base_url: str = Field(
        ...,
        min_length=1,
        max_length=2048,
        pattern=r"^\s*https?://\S+$",
        description="Redmine 实例地址",
    )
    api_key: SecretStr = Field(..., min_length=1, description="Redmine API Key")


class CredentialStatusResponse(BaseModel):
    """Credential status, never includes the key itself."""

    configured: bool = Field(..., description="是否已配置")
    base_url: str | None = Field(None, description="Redmine 实例地址")
    redmine_user_id: str | None = Field(None, description="Redmine 用户 ID")
    updated_at: datetime | None = Field(None, description="最后更新时间")

    @classmethod
    def from_credential(
        cls, credential: RedmineCredential | None
    ) -> "CredentialStatusResponse":
        if credential is None:
            return cls(configured=False)
        return cls(
            configured=True,
            base_url=credential.base_url,
            redmine_user_id=credential.redmine_user_id,
            updated_at=credential.updated_at,
        )


class DeleteCredentialResponse(BaseModel):
    """Delete result."""

    deleted: bool = Field(..., description="是否删除了已有凭据")
