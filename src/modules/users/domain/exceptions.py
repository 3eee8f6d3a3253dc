"""User domain exceptions.

每个异常类定义自己的 http_status_code 和 error_code，
由 core/interfaces/http/exceptions.py 中的 domain_exception_handler 统一处理。
"""

from fastapi import status

from src.core.domain.exceptions import DomainException, EntityNotFoundError


class UserNotFoundError(EntityNotFoundError):
    """Raised when user is not found."""

    def __init__(self, user_id: str | None = None) -> None:
        super().__init__("User", user_id)


class MagicLinkExpiredError(DomainException):
    """Raised when magic link has expired."""

    http_status_code = status.HTTP_400_BAD_REQUEST
    error_code = "MAGIC_LINK_EXPIRED"

    def __init__(self) -> None:
        super().__init__("Magic link has expired")


class MagicLinkAlreadyUsedError(DomainException):
    """Raised when magic link has already been used."""

    http_status_code = status.HTTP_400_BAD_REQUEST
    error_code = "MAGIC_LINK_ALREADY_USED"

    def __init__(self) -> None:
        super().__init__("Magic link has already been used")


class InvalidMagicLinkError(DomainException):
    """Raised when magic link is invalid."""

    http_status_code = status.HTTP_400_BAD_REQUEST
    error_code = "INVALID_MAGIC_LINK"

    def __init__(self) -> None:
        super().__init__("Invalid magic link")


class MagicLinkRateLimitedError(DomainException):
    """Raised when an email asks for links too often.

    reason 为 cooldown（刚发过一封）或 rate_limit（窗口配额用完）。
    """

    http_status_code = status.HTTP_429_TOO_MANY_REQUESTS
    error_code = "RATE_LIMITED"

    def __init__(self, reason: str, retry_after_seconds: int) -> None:
        self.reason = reason
        self.retry_after_seconds = retry_after_seconds
        if reason == "cooldown":
            message = "Please wait before requesting another login link"
        else:
            message = "Too many login link requests, try again later"
        super().__init__(
            message,
            details={"reason": reason, "retry_after_seconds": retry_after_seconds},
        )

    @property
    def headers(self) -> dict[str, str] | None:
        return {"Retry-After": str(self.retry_after_seconds)}


class MagicLinkDeliveryError(DomainException):
    """Raised when the login email could not be sent."""

    http_status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "EMAIL_DELIVERY_FAILED"

    def __init__(self, reason: str | None = None) -> None:
        message = "Login email could not be sent"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
