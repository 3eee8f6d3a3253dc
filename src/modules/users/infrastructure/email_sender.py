"""Magic link email delivery over SMTP."""

import asyncio
from datetime import datetime

from loguru import logger

from src.core.config import settings
from src.core.infrastructure.email.smtp import SMTPProvider
from src.modules.users.application.email_templates import render_magic_link_email
from src.modules.users.domain.exceptions import MagicLinkDeliveryError


class SMTPMagicLinkSender:
    """Send the login email inline, so the caller knows whether it went out."""

    def __init__(self, provider: SMTPProvider | None = None):
        self.provider = provider or SMTPProvider()

    async def send(self, email: str, login_url: str, expires_at: datetime) -> None:
        if not self.provider.is_configured():
            if settings.ENVIRONMENT == "local":
                # 本地未配置 SMTP 时，登录链接已打印在日志里
                logger.info("SMTP not configured, skipping login email in local env")
                return
            raise MagicLinkDeliveryError("SMTP not configured")

        subject, html_body, plain_body = render_magic_link_email(
            to_email=email, login_url=login_url, expires_at=expires_at
        )
        result = await asyncio.to_thread(
            self.provider.send, email, subject, html_body, plain_body
        )
        if not result.success:
            raise MagicLinkDeliveryError(result.error)
