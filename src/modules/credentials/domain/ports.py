"""Credential domain ports."""

from typing import Protocol


class CredentialVerifier(Protocol):
    async def verify(self, base_url: str, api_key: str) -> str:
        """Check the key against the tracker and return the tracker user id.

        Raises:
            CredentialVerificationError: key rejected, tracker unreachable or timed out
        """
        ...
