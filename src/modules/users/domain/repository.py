"""User repository interface."""

from abc import abstractmethod

from src.core.domain.repository import BaseRepository
from src.modules.users.domain.entities import MagicLink, User


class UserRepository(BaseRepository[User]):
    """User repository interface."""

    @abstractmethod
    async def get_by_email(self, email: str) -> User | None:
        """Get user by email."""
        pass


class MagicLinkRepository(BaseRepository[MagicLink]):
    """Magic link repository interface."""

    @abstractmethod
    async def get_by_token(self, token: str) -> MagicLink | None:
        """Get magic link by token."""
        pass

    @abstractmethod
    async def invalidate_all_for_email(self, email: str) -> int:
        """Invalidate all magic links for an email. Returns count of invalidated links."""
        pass

    @abstractmethod
    async def delete_all_for_email(self, email: str) -> int:
        """Delete every magic link issued to an email. Returns count of deleted links."""
        pass
