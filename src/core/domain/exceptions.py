"""Base domain exceptions.

所有领域异常都应继承自 DomainException，并可以通过定义 http_status_code 和 error_code
类属性来指定 HTTP 响应细节。
"""

from typing import Any

from fastapi import status


class DomainException(Exception):
    """Base exception for all domain errors.

    子类可以通过定义以下类属性来自定义 HTTP 响应：
    - http_status_code: HTTP 状态码（默认 400）
    - error_code: 错误代码字符串（默认 "DOMAIN_ERROR"）

    实例级的 details 会原样放进响应体的 error.details，headers 会作为响应头返回
    （例如限流时的 Retry-After）。
    """

    http_status_code: int = status.HTTP_400_BAD_REQUEST
    error_code: str = "DOMAIN_ERROR"

    def __init__(
        self,
        message: str = "A domain error occurred",
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.details = details
        super().__init__(self.message)

    @property
    def headers(self) -> dict[str, str] | None:
        return None


class EntityNotFoundError(DomainException):
    """Raised when an entity is not found."""

    http_status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str | None = None):
        message = f"{entity_type} not found"
        if entity_id:
            message = f"{entity_type} with id '{entity_id}' not found"
        super().__init__(message)


class ValidationError(DomainException):
    """Raised when validation fails."""

    http_status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"


class AuthenticationRequiredError(DomainException):
    """Raised when an operation needs an authenticated principal."""

    http_status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHENTICATED"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)

    @property
    def headers(self) -> dict[str, str] | None:
        return {"WWW-Authenticate": "Bearer"}
