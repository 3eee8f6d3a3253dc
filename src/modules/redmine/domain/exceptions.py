"""Redmine API errors."""

from enum import Enum

from fastapi import status

from src.core.domain.exceptions import DomainException


class RedmineErrorKind(str, Enum):
    """Closed set of Redmine failure kinds."""

    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    API_ERROR = "api_error"

    @classmethod
    def from_status(cls, status_code: int) -> "RedmineErrorKind":
        if status_code == 401:
            return cls.UNAUTHORIZED
        if status_code == 404:
            return cls.NOT_FOUND
        if status_code == 422:
            return cls.VALIDATION
        if status_code >= 500:
            return cls.SERVER_ERROR
        return cls.API_ERROR


# Redmine 侧的 401 不是本服务的认证失败，对外统一按网关错误返回
_HTTP_STATUS_BY_KIND = {
    RedmineErrorKind.UNAUTHORIZED: status.HTTP_502_BAD_GATEWAY,
    RedmineErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    RedmineErrorKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    RedmineErrorKind.TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
}

_MESSAGE_BY_KIND = {
    RedmineErrorKind.UNAUTHORIZED: "Redmine rejected the API key",
    RedmineErrorKind.NOT_FOUND: "Resource not found in Redmine",
    RedmineErrorKind.VALIDATION: "Redmine rejected the request",
    RedmineErrorKind.SERVER_ERROR: "Redmine server error",
    RedmineErrorKind.NETWORK_ERROR: "Unable to connect to Redmine",
    RedmineErrorKind.TIMEOUT: "Redmine did not respond in time",
    RedmineErrorKind.API_ERROR: "Unexpected Redmine response",
}


class RedmineApiError(DomainException):
    """Raised for any failed Redmine call.

    kind 决定对外的 HTTP 状态码和 error_code（REDMINE_<KIND>），
    messages 为 Redmine 422 响应里的 errors 列表。
    """

    http_status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "REDMINE_API_ERROR"

    def __init__(
        self,
        kind: RedmineErrorKind,
        status_code: int | None = None,
        messages: list[str] | None = None,
    ) -> None:
        self.kind = kind
        self.status_code = status_code
        self.messages = messages or []
        self.http_status_code = _HTTP_STATUS_BY_KIND.get(
            kind, status.HTTP_502_BAD_GATEWAY
        )
        self.error_code = f"REDMINE_{kind.value.upper()}"

        message = _MESSAGE_BY_KIND[kind]
        if self.messages:
            message = f"{message}: {'; '.join(self.messages)}"
        details: dict = {"kind": kind.value}
        if status_code is not None:
            details["status_code"] = status_code
        if self.messages:
            details["messages"] = self.messages
        super().__init__(message, details=details)


class MissingIssueError(DomainException):
    """Raised when the user requires an issue on every entry and some lack one."""

    http_status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "MISSING_ISSUE"

    def __init__(self, indexes: list[int]) -> None:
        self.indexes = indexes
        super().__init__(
            "Issue is required for all time entries, select an issue "
            "or change the preference in settings",
            details={"type": "missing_issue", "indexes": indexes},
        )
