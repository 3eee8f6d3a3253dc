"""AES-256-GCM secret envelope.

用于加密存储用户的 Redmine API Key。密钥在进程启动时从 CRYPTO_KEY_BASE64
读取一次，缺失或长度不对时直接启动失败，而不是等到第一次加解密才报错。
"""

import base64
import binascii
import os
from functools import lru_cache

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from src.core.config import settings
from src.core.domain.ports.cipher import CryptoIntegrityError, SealedSecret

KEY_BYTES = 32
NONCE_BYTES = 12
TAG_BYTES = 16


class CryptoConfigurationError(RuntimeError):
    """Encryption key is missing or malformed."""


def _b64encode(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _b64decode(value: str) -> bytes:
    return base64.b64decode(value.encode("ascii"), validate=True)


class CryptoBox:
    """Seal and open short secrets with a process-wide AES-256-GCM key."""

    def __init__(self, key: bytes):
        if len(key) != KEY_BYTES:
            raise CryptoConfigurationError(
                f"Encryption key must be exactly {KEY_BYTES} bytes, got {len(key)}"
            )
        self._aead = AESGCM(key)

    @classmethod
    def from_base64(cls, encoded_key: str | None) -> "CryptoBox":
        """Build a box from the base64 form used in configuration."""
        if not encoded_key:
            raise CryptoConfigurationError("CRYPTO_KEY_BASE64 is not set")
        try:
            key = _b64decode(encoded_key.strip())
        except (binascii.Error, ValueError) as e:
            raise CryptoConfigurationError(
                "CRYPTO_KEY_BASE64 is not valid base64"
            ) from e
        return cls(key)

    def seal(self, plaintext: str) -> SealedSecret:
        nonce = os.urandom(NONCE_BYTES)
        # AESGCM 输出 ciphertext || tag
        sealed = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        return SealedSecret(
            ciphertext=_b64encode(sealed[:-TAG_BYTES]),
            nonce=_b64encode(nonce),
            auth_tag=_b64encode(sealed[-TAG_BYTES:]),
        )

    def open(self, ciphertext: str, nonce: str, auth_tag: str) -> str:
        """Verify and decrypt an envelope.

        Raises:
            CryptoIntegrityError: 任意字段被篡改、编码损坏、长度不对或密钥不匹配
        """
        try:
            raw_nonce = _b64decode(nonce)
            raw_tag = _b64decode(auth_tag)
            raw_ciphertext = _b64decode(ciphertext)
        except (binascii.Error, ValueError) as e:
            raise CryptoIntegrityError("Sealed secret is not valid base64") from e

        if len(raw_nonce) != NONCE_BYTES or len(raw_tag) != TAG_BYTES:
            raise CryptoIntegrityError("Sealed secret has a malformed nonce or tag")

        try:
            plaintext = self._aead.decrypt(raw_nonce, raw_ciphertext + raw_tag, None)
        except InvalidTag as e:
            raise CryptoIntegrityError("Sealed secret failed authentication") from e

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CryptoIntegrityError("Sealed secret is not valid UTF-8") from e


@lru_cache
def get_crypto_box() -> CryptoBox:
    """Process-wide CryptoBox built from settings."""
    return CryptoBox.from_base64(settings.CRYPTO_KEY_BASE64)
