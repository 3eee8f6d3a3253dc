"""User module ports."""

from datetime import datetime
from typing import Protocol


class MagicLinkSender(Protocol):
    """Port for delivering magic link emails."""

    async def send(self, email: str, login_url: str, expires_at: datetime) -> None:
        """Deliver the login link.

        Raises:
            MagicLinkDeliveryError: 邮件未能发出
        """
        ...


class AccountDataEraser(Protocol):
    """Port for removing the data other modules keep for a user."""

    async def delete(self, user_id: str) -> bool:
        """Remove the user's data; returns whether anything existed."""
        ...
