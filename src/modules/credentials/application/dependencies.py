"""Credential module application dependencies.

Defines dependency providers for interfaces layer without importing infrastructure.
"""

from typing import NoReturn

from fastapi import Depends

from src.core.application.dependencies import get_scoped_cache, get_secret_cipher
from src.core.domain.ports.cipher import SecretCipher
from src.core.infrastructure.cache.scoped_cache import ScopedCache
from src.modules.credentials.application.services import CredentialSettingsService
from src.modules.credentials.application.vault import CredentialVault
from src.modules.credentials.domain.ports import CredentialVerifier
from src.modules.credentials.domain.repository import CredentialRepository


def _missing_dependency(name: str) -> NoReturn:
    raise RuntimeError(f"Missing dependency override for {name}")


async def get_credential_repository() -> CredentialRepository:
    _missing_dependency("CredentialRepository")


async def get_credential_verifier() -> CredentialVerifier:
    _missing_dependency("CredentialVerifier")


async def get_credential_vault(
    repository: CredentialRepository = Depends(get_credential_repository),
    cipher: SecretCipher = Depends(get_secret_cipher),
    verifier: CredentialVerifier = Depends(get_credential_verifier),
) -> CredentialVault:
    return CredentialVault(repository, cipher, verifier)


async def get_credential_settings_service(
    vault: CredentialVault = Depends(get_credential_vault),
    cache: ScopedCache = Depends(get_scoped_cache),
) -> CredentialSettingsService:
    return CredentialSettingsService(vault, cache)
