"""Redmine credential domain entities."""

from dataclasses import dataclass

from pydantic import Field

from src.core.domain.base_entity import BaseEntity


def normalize_base_url(base_url: str) -> str:
    """去掉首尾空白和末尾的斜杠，作为缓存 key 与存储的统一形式。"""
    return base_url.strip().rstrip("/")


class RedmineCredential(BaseEntity):
    """A user's Redmine connection, with the API key sealed at rest."""

    user_id: str = Field(..., description="所属用户")
    base_url: str = Field(..., description="Redmine 实例地址")
    ciphertext: str = Field(..., description="API Key 密文 (base64)")
    nonce: str = Field(..., description="AES-GCM nonce (base64)")
    auth_tag: str = Field(..., description="AES-GCM 认证标签 (base64)")
    redmine_user_id: str = Field(..., description="Redmine 侧的用户 ID")


@dataclass(frozen=True)
class DecryptedCredential:
    """Plaintext view of a credential. Lives only for the duration of one call."""

    base_url: str
    api_key: str
    redmine_user_id: str

    def __repr__(self) -> str:
        return (
            f"DecryptedCredential(base_url={self.base_url!r}, api_key='***', "
            f"redmine_user_id={self.redmine_user_id!r})"
        )
