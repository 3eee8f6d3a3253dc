"""Secret cipher port."""

from dataclasses import dataclass
from typing import Protocol


class CryptoIntegrityError(Exception):
    """Ciphertext, nonce or tag failed authentication (or the key is wrong)."""


@dataclass(frozen=True)
class SealedSecret:
    """Base64 encoded envelope produced by a single seal operation."""

    ciphertext: str
    nonce: str
    auth_tag: str


class SecretCipher(Protocol):
    def seal(self, plaintext: str) -> SealedSecret: ...

    def open(self, ciphertext: str, nonce: str, auth_tag: str) -> str: ...
