"""Tests for the AES-256-GCM secret envelope."""

import base64

import pytest

from src.core.domain.ports.cipher import CryptoIntegrityError
from src.core.infrastructure.security.crypto import (
    CryptoBox,
    CryptoConfigurationError,
)


def _flip_first_byte(value: str) -> str:
    raw = bytearray(base64.b64decode(value))
    raw[0] ^= 0x01
    return base64.b64encode(bytes(raw)).decode("ascii")


def test_seal_then_open_returns_plaintext(crypto_box: CryptoBox) -> None:
    sealed = crypto_box.seal("key-abc")

    assert crypto_box.open(sealed.ciphertext, sealed.nonce, sealed.auth_tag) == (
        "key-abc"
    )
    assert len(base64.b64decode(sealed.nonce)) == 12
    assert len(base64.b64decode(sealed.auth_tag)) == 16


def test_seal_uses_fresh_nonce_each_call(crypto_box: CryptoBox) -> None:
    nonces = {crypto_box.seal("same secret").nonce for _ in range(50)}
    assert len(nonces) == 50


def test_unicode_secret_round_trips(crypto_box: CryptoBox) -> None:
    sealed = crypto_box.seal("密钥-ключ")
    assert crypto_box.open(sealed.ciphertext, sealed.nonce, sealed.auth_tag) == (
        "密钥-ключ"
    )


@pytest.mark.parametrize("field", ["ciphertext", "nonce", "auth_tag"])
def test_tampered_field_is_rejected(crypto_box: CryptoBox, field: str) -> None:
    sealed = crypto_box.seal("key-abc")
    parts = {
        "ciphertext": sealed.ciphertext,
        "nonce": sealed.nonce,
        "auth_tag": sealed.auth_tag,
    }
    parts[field] = _flip_first_byte(parts[field])

    with pytest.raises(CryptoIntegrityError):
        crypto_box.open(**parts)


def test_wrong_key_is_rejected(crypto_box: CryptoBox) -> None:
    sealed = crypto_box.seal("key-abc")
    other = CryptoBox(b"\xff" * 32)

    with pytest.raises(CryptoIntegrityError):
        other.open(sealed.ciphertext, sealed.nonce, sealed.auth_tag)


def test_malformed_base64_is_integrity_error(crypto_box: CryptoBox) -> None:
    sealed = crypto_box.seal("key-abc")

    with pytest.raises(CryptoIntegrityError):
        crypto_box.open("not base64!!", sealed.nonce, sealed.auth_tag)


def test_truncated_tag_is_integrity_error(crypto_box: CryptoBox) -> None:
    sealed = crypto_box.seal("key-abc")
    short_tag = base64.b64encode(base64.b64decode(sealed.auth_tag)[:8]).decode()

    with pytest.raises(CryptoIntegrityError):
        crypto_box.open(sealed.ciphertext, sealed.nonce, short_tag)


@pytest.mark.parametrize(
    "encoded",
    [
        None,
        "",
        "%%%not-base64%%%",
        base64.b64encode(b"too short").decode(),
        base64.b64encode(b"x" * 33).decode(),
    ],
)
def test_invalid_key_configuration_fails_fast(encoded: str | None) -> None:
    with pytest.raises(CryptoConfigurationError):
        CryptoBox.from_base64(encoded)
