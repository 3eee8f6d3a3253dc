"""Credential database models."""

from sqlalchemy import Text
from sqlmodel import Field

from src.core.infrastructure.database.base_model import BaseModel


class RedmineCredentialModel(BaseModel, table=True):
    """Encrypted Redmine credential, one row per user."""

    __tablename__ = "redmine_credentials"

    user_id: str = Field(index=True, nullable=False, unique=True)
    base_url: str = Field(nullable=False)
    ciphertext: str = Field(sa_type=Text, nullable=False)
    nonce: str = Field(nullable=False)
    auth_tag: str = Field(nullable=False)
    redmine_user_id: str = Field(nullable=False)
