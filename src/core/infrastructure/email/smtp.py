"""SMTP email provider."""

import smtplib
import ssl
from dataclasses import dataclass
from datetime import UTC, datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from loguru import logger

from src.core.config import settings


@dataclass
class EmailResult:
    """Email send result."""

    success: bool
    message_id: str | None = None
    error: str | None = None


class SMTPProvider:
    """SMTP email provider.

    Handles:
    - TLS/SSL support
    - Authentication
    - Connection timeout
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        user: str | None = None,
        password: str | None = None,
        use_tls: bool | None = None,
        use_ssl: bool | None = None,
        from_email: str | None = None,
        from_name: str | None = None,
        timeout: float | None = None,
    ):
        self.host = host or settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.user = user or settings.SMTP_USER
        self.password = password or settings.SMTP_PASSWORD
        self.use_tls = use_tls if use_tls is not None else settings.SMTP_TLS
        self.use_ssl = use_ssl if use_ssl is not None else settings.SMTP_SSL
        self.from_email = from_email or settings.EMAILS_FROM_EMAIL
        self.from_name = from_name or settings.EMAILS_FROM_NAME
        self.timeout = timeout or settings.SMTP_TIMEOUT_SECONDS

    def is_configured(self) -> bool:
        """Check if SMTP is properly configured."""
        return bool(self.host and self.from_email)

    def _create_connection(self) -> smtplib.SMTP | smtplib.SMTP_SSL:
        """Create SMTP connection."""
        if self.use_ssl:
            context = ssl.create_default_context()
            server = smtplib.SMTP_SSL(
                self.host, self.port, context=context, timeout=self.timeout
            )
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            if self.use_tls:
                context = ssl.create_default_context()
                server.starttls(context=context)

        if self.user and self.password:
            server.login(self.user, self.password)

        return server

    def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        plain_body: str | None = None,
    ) -> EmailResult:
        """Send email synchronously.

        Returns:
            EmailResult with success status
        """
        if not self.is_configured():
            return EmailResult(success=False, error="SMTP not configured")

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email
        msg["Date"] = datetime.now(UTC).strftime("%a, %d %b %Y %H:%M:%S +0000")
        if plain_body:
            msg.attach(MIMEText(plain_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            with self._create_connection() as server:
                server.send_message(msg)
        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP authentication failed: {e}")
            return EmailResult(success=False, error="Authentication failed")
        except smtplib.SMTPRecipientsRefused:
            logger.error("SMTP recipient refused")
            return EmailResult(success=False, error="Recipient refused")
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP error: {e}")
            return EmailResult(success=False, error=f"SMTP error: {e}")

        logger.info("Email sent successfully")
        return EmailResult(success=True, message_id=msg.get("Message-ID"))
