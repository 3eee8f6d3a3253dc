"""Tests for the credential vault and settings service."""

import base64

import pytest

from src.core.infrastructure.cache.scoped_cache import ScopedCache
from src.core.infrastructure.security.crypto import CryptoBox
from src.modules.credentials.application.services import CredentialSettingsService
from src.modules.credentials.application.vault import CredentialVault
from src.modules.credentials.domain.entities import normalize_base_url
from src.modules.credentials.domain.exceptions import (
    CredentialDecryptionError,
    CredentialVerificationError,
)
from tests.unit.fakes import FakeVerifier, InMemoryCredentialRepository


@pytest.fixture
def repository() -> InMemoryCredentialRepository:
    return InMemoryCredentialRepository()


@pytest.fixture
def verifier() -> FakeVerifier:
    return FakeVerifier({"key-abc": "42", "key-new": "43"})


@pytest.fixture
def vault(repository, crypto_box, verifier) -> CredentialVault:
    return CredentialVault(repository, crypto_box, verifier)


def _corrupt(value: str) -> str:
    raw = bytearray(base64.b64decode(value))
    raw[-1] ^= 0xFF
    return base64.b64encode(bytes(raw)).decode("ascii")


def test_normalize_base_url() -> None:
    assert normalize_base_url("  https://t.example/// ") == "https://t.example"


@pytest.mark.anyio
async def test_save_then_fetch(vault: CredentialVault, repository) -> None:
    saved = await vault.save("u1", "https://t.example/", "key-abc")

    assert saved.base_url == "https://t.example"
    assert saved.redmine_user_id == "42"
    assert "key-abc" not in saved.ciphertext

    stored = await vault.fetch("u1")
    assert stored is not None
    assert stored.ciphertext == saved.ciphertext

    decrypted = await vault.fetch_decrypted("u1")
    assert decrypted is not None
    assert decrypted.api_key == "key-abc"
    assert decrypted.base_url == "https://t.example"
    assert decrypted.redmine_user_id == "42"
    assert "key-abc" not in repr(decrypted)


@pytest.mark.anyio
async def test_rejected_key_persists_nothing(vault: CredentialVault, repository) -> None:
    with pytest.raises(CredentialVerificationError) as exc_info:
        await vault.save("u1", "https://t.example", "wrong-key")

    assert exc_info.value.reason == "api_key_rejected"
    assert repository.credentials == {}


@pytest.mark.anyio
async def test_resave_replaces_whole_record(vault: CredentialVault) -> None:
    first = await vault.save("u1", "https://t.example", "key-abc")
    second = await vault.save("u1", "https://other.example", "key-new")

    assert second.id == first.id
    assert second.nonce != first.nonce
    decrypted = await vault.fetch_decrypted("u1")
    assert decrypted.base_url == "https://other.example"
    assert decrypted.api_key == "key-new"
    assert decrypted.redmine_user_id == "43"


@pytest.mark.anyio
async def test_fetch_missing_returns_none(vault: CredentialVault) -> None:
    assert await vault.fetch("nobody") is None
    assert await vault.fetch_decrypted("nobody") is None


@pytest.mark.anyio
async def test_corrupted_tag_self_heals(vault: CredentialVault, repository) -> None:
    saved = await vault.save("u1", "https://t.example", "key-abc")
    repository.credentials["u1"] = saved.model_copy(
        update={"auth_tag": _corrupt(saved.auth_tag)}
    )

    with pytest.raises(CredentialDecryptionError):
        await vault.fetch_decrypted("u1")

    await vault.self_heal("u1")
    await vault.self_heal("u1")
    assert await vault.fetch("u1") is None


@pytest.mark.anyio
async def test_wrong_key_is_decryption_error(repository, verifier) -> None:
    writer = CredentialVault(repository, CryptoBox(b"\x01" * 32), verifier)
    reader = CredentialVault(repository, CryptoBox(b"\x02" * 32), verifier)
    await writer.save("u1", "https://t.example", "key-abc")

    with pytest.raises(CredentialDecryptionError):
        await reader.fetch_decrypted("u1")


@pytest.mark.anyio
async def test_delete_is_idempotent(vault: CredentialVault) -> None:
    await vault.save("u1", "https://t.example", "key-abc")

    assert await vault.delete("u1") is True
    assert await vault.delete("u1") is False


@pytest.mark.anyio
async def test_settings_save_invalidates_user_cache(vault, kv, clock) -> None:
    cache = ScopedCache(kv, clock=clock)
    service = CredentialSettingsService(vault, cache)
    calls = 0

    async def fetch_projects():
        nonlocal calls
        calls += 1
        return ["old"]

    await service.save("u1", "https://t.example", "key-abc")
    await cache.wrap("projects", "u1", "https://t.example", 600, fetch_projects)()
    await service.save("u1", "https://t.example", "key-new")
    await cache.wrap("projects", "u1", "https://t.example", 600, fetch_projects)()

    assert calls == 2


@pytest.mark.anyio
async def test_settings_delete_reports_existence(vault, kv, clock) -> None:
    service = CredentialSettingsService(vault, ScopedCache(kv, clock=clock))
    await service.save("u1", "https://t.example", "key-abc")

    assert await service.delete("u1") is True
    assert await service.get_status("u1") is None
    assert await service.delete("u1") is False
