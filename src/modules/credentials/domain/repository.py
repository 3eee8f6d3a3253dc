"""Credential repository interface."""

from abc import ABC, abstractmethod

from src.modules.credentials.domain.entities import RedmineCredential


class CredentialRepository(ABC):
    """每个用户至多一条凭据，按 user_id 存取。"""

    @abstractmethod
    async def get_by_user_id(self, user_id: str) -> RedmineCredential | None:
        """Get credential by owner, None when absent."""
        pass

    @abstractmethod
    async def upsert(self, credential: RedmineCredential) -> RedmineCredential:
        """Insert, or fully replace the existing record for the same user."""
        pass

    @abstractmethod
    async def delete_by_user_id(self, user_id: str) -> bool:
        """Delete the user's credential. Returns whether a record existed."""
        pass
