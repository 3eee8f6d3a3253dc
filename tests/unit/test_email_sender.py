"""Tests for magic link email delivery."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from src.core.infrastructure.email.smtp import EmailResult, SMTPProvider
from src.modules.users.application.email_templates import render_magic_link_email
from src.modules.users.domain.exceptions import MagicLinkDeliveryError
from src.modules.users.infrastructure.email_sender import SMTPMagicLinkSender

EXPIRES_AT = datetime(2026, 10, 19, 12, 30, tzinfo=UTC)


def _provider(configured: bool, result: EmailResult | None = None) -> MagicMock:
    provider = MagicMock(spec=SMTPProvider)
    provider.is_configured.return_value = configured
    provider.send.return_value = result or EmailResult(success=True)
    return provider


def test_template_contains_login_url() -> None:
    subject, html_body, plain_body = render_magic_link_email(
        to_email="user@example.com",
        login_url="https://app.example/auth/callback?token=abc",
        expires_at=EXPIRES_AT,
    )

    assert subject
    assert "https://app.example/auth/callback?token=abc" in html_body
    assert "https://app.example/auth/callback?token=abc" in plain_body


@pytest.mark.anyio
async def test_sends_through_provider() -> None:
    provider = _provider(configured=True)

    await SMTPMagicLinkSender(provider).send(
        "user@example.com", "https://app.example/login", EXPIRES_AT
    )

    provider.send.assert_called_once()
    assert provider.send.call_args.args[0] == "user@example.com"


@pytest.mark.anyio
async def test_failed_send_raises_delivery_error() -> None:
    provider = _provider(
        configured=True, result=EmailResult(success=False, error="Connection refused")
    )

    with pytest.raises(MagicLinkDeliveryError) as exc_info:
        await SMTPMagicLinkSender(provider).send(
            "user@example.com", "https://app.example/login", EXPIRES_AT
        )
    assert exc_info.value.http_status_code == 503


@pytest.mark.anyio
async def test_unconfigured_smtp_is_skipped_locally() -> None:
    provider = _provider(configured=False)

    await SMTPMagicLinkSender(provider).send(
        "user@example.com", "https://app.example/login", EXPIRES_AT
    )

    provider.send.assert_not_called()
