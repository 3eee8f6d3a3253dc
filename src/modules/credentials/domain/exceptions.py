"""Credential domain exceptions.

由 core/interfaces/http/exceptions.py 中的 domain_exception_handler 统一渲染。
"""

from fastapi import status

from src.core.domain.exceptions import DomainException


class CredentialVerificationError(DomainException):
    """Redmine rejected the key, or could not be reached in time.

    保存流程在加密之前失败，数据库里不会留下任何记录。
    """

    http_status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "CREDENTIAL_VERIFICATION_FAILED"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(
            f"Could not verify Redmine credentials: {reason}",
            details={"reason": reason},
        )


class CredentialStorageError(DomainException):
    """Raised when the credential store is unavailable."""

    http_status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "CREDENTIAL_STORAGE_UNAVAILABLE"

    def __init__(self, operation: str) -> None:
        super().__init__(f"Credential store unavailable during {operation}")


class CredentialDecryptionError(DomainException):
    """Stored credential failed authentication on decrypt."""

    http_status_code = status.HTTP_409_CONFLICT
    error_code = "CREDENTIAL_DECRYPTION_FAILED"

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__("Stored Redmine credentials could not be decrypted")


class RedmineNotConfiguredError(DomainException):
    """Raised when the user has not connected a Redmine account yet."""

    http_status_code = status.HTTP_409_CONFLICT
    error_code = "REDMINE_NOT_CONFIGURED"

    def __init__(self) -> None:
        super().__init__(
            "Redmine is not configured, add your Redmine URL and API key in settings"
        )


class RedmineCredentialsResetError(DomainException):
    """Raised after corrupted credentials were removed."""

    http_status_code = status.HTTP_409_CONFLICT
    error_code = "REDMINE_CREDENTIALS_RESET"

    def __init__(self) -> None:
        super().__init__(
            "Your stored Redmine credentials were unreadable and have been removed, "
            "please enter them again"
        )
