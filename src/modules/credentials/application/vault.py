"""Credential vault.

保存顺序固定为 校验 → 加密 → 写库：明文 API Key 只在内存中出现，
校验失败时不会加密，更不会落库。
"""

from loguru import logger

from src.core.domain.ports.cipher import CryptoIntegrityError, SecretCipher
from src.core.infrastructure.logging import BusinessEvents
from src.modules.credentials.domain.entities import (
    DecryptedCredential,
    RedmineCredential,
    normalize_base_url,
)
from src.modules.credentials.domain.exceptions import (
    CredentialDecryptionError,
    CredentialVerificationError,
)
from src.modules.credentials.domain.ports import CredentialVerifier
from src.modules.credentials.domain.repository import CredentialRepository


class CredentialVault:
    """Stores Redmine API keys encrypted, one record per user."""

    def __init__(
        self,
        repository: CredentialRepository,
        cipher: SecretCipher,
        verifier: CredentialVerifier,
    ):
        self.repository = repository
        self.cipher = cipher
        self.verifier = verifier

    async def save(
        self, user_id: str, base_url: str, api_key: str
    ) -> RedmineCredential:
        """Verify, encrypt and persist a credential.

        调用方负责在成功后失效该用户的缓存 tag。

        Raises:
            CredentialVerificationError: Redmine 拒绝或不可达，未写入任何数据
            CredentialStorageError: 数据库不可用
        """
        base_url = normalize_base_url(base_url)
        try:
            redmine_user_id = await self.verifier.verify(base_url, api_key)
        except CredentialVerificationError as e:
            BusinessEvents.credential_verification_failed(
                user_id=user_id, base_url=base_url, reason=e.reason
            )
            raise

        sealed = self.cipher.seal(api_key)
        credential = RedmineCredential(
            user_id=user_id,
            base_url=base_url,
            ciphertext=sealed.ciphertext,
            nonce=sealed.nonce,
            auth_tag=sealed.auth_tag,
            redmine_user_id=redmine_user_id,
        )
        return await self.repository.upsert(credential)

    async def fetch(self, user_id: str) -> RedmineCredential | None:
        return await self.repository.get_by_user_id(user_id)

    async def fetch_decrypted(self, user_id: str) -> DecryptedCredential | None:
        """Return the plaintext credential, or None when not configured.

        Raises:
            CredentialDecryptionError: 密文、nonce 或 tag 校验失败
        """
        credential = await self.repository.get_by_user_id(user_id)
        if credential is None:
            return None

        try:
            api_key = self.cipher.open(
                credential.ciphertext, credential.nonce, credential.auth_tag
            )
        except CryptoIntegrityError as e:
            logger.warning(f"Stored credential for user {user_id} failed to decrypt")
            raise CredentialDecryptionError(user_id) from e

        return DecryptedCredential(
            base_url=credential.base_url,
            api_key=api_key,
            redmine_user_id=credential.redmine_user_id,
        )

    async def self_heal(self, user_id: str) -> None:
        """Remove an undecryptable credential so the user can re-enter it."""
        existed = await self.repository.delete_by_user_id(user_id)
        if existed:
            BusinessEvents.credential_self_healed(user_id=user_id)

    async def delete(self, user_id: str) -> bool:
        return await self.repository.delete_by_user_id(user_id)
