"""User database models."""

from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field

from src.core.infrastructure.database.base_model import BaseModel


class UserModel(BaseModel, table=True):
    """User database model."""

    __tablename__ = "users"

    email: str = Field(index=True, nullable=False, unique=True)
    is_active: bool = Field(default=True, nullable=False)
    last_login_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),
        nullable=True,
    )
    display_name: str | None = Field(default=None, nullable=True)
    require_issue: bool = Field(default=False, nullable=False)


class MagicLinkModel(BaseModel, table=True):
    """Magic link database model."""

    __tablename__ = "auth_magic_links"

    email: str = Field(index=True, nullable=False)
    token: str = Field(index=True, nullable=False, unique=True)
    expires_at: datetime = Field(
        sa_type=DateTime(timezone=True),
        nullable=False,
    )
    is_used: bool = Field(default=False, nullable=False)
    used_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),
        nullable=True,
    )
