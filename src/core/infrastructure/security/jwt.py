"""JWT token handling."""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from pydantic import BaseModel, Field

from src.core.config import settings

security = HTTPBearer(auto_error=False)


class TokenPayload(BaseModel):
    """JWT Token Payload 结构。"""

    sub: str = Field(..., description="Subject (用户ID或email)")
    exp: int = Field(..., description="过期时间戳", gt=0)
    token_type: str | None = Field(None, description="Token 类型 (如 'magic_link')")

    def get_subject(self) -> str:
        return self.sub

    def is_magic_link(self) -> bool:
        return self.token_type == "magic_link"


def create_access_token(
    subject: str | Any,
    expires_delta: timedelta | None = None,
    extra_claims: dict | None = None,
) -> str:
    """Create a JWT access token."""
    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode = {"exp": expire, "sub": str(subject)}
    if extra_claims:
        to_encode.update(extra_claims)

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_magic_link_token(email: str) -> str:
    """Create a magic link token for email authentication."""
    expire = datetime.now(UTC) + timedelta(minutes=settings.MAGIC_LINK_EXPIRE_MINUTES)
    to_encode = {
        "exp": expire,
        "sub": email,
        "type": "magic_link",
        "jti": secrets.token_urlsafe(16),
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> TokenPayload:
    """Decode and validate a JWT token.

    Raises:
        HTTPException: Token 过期或无效
    """
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
        return TokenPayload(
            sub=payload.get("sub", ""),
            exp=payload.get("exp", 0),
            token_type=payload.get("type"),
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )


def _user_id_from_token(token: str) -> str:
    payload = decode_token(token)
    # magic link token 只能用来兑换，不能当作访问令牌
    if payload.is_magic_link() or not payload.get_subject():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )
    return payload.get_subject()


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    """Get current user ID from the Bearer token, 401 when absent."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _user_id_from_token(credentials.credentials)


async def get_optional_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str | None:
    """Get current user ID, or None when no Bearer token was sent.

    携带了无效 token 仍然返回 401。
    """
    if credentials is None:
        return None
    return _user_id_from_token(credentials.credentials)


class JWTTokenService:
    """Token service implementation using JWT."""

    def create_access_token(self, subject: str, extra_claims: dict | None = None) -> str:
        return create_access_token(subject=subject, extra_claims=extra_claims)

    def create_magic_link_token(self, email: str) -> str:
        return create_magic_link_token(email)


def get_token_service() -> JWTTokenService:
    """Get token service instance."""
    return JWTTokenService()
