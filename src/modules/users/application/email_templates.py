"""Email templates for user authentication."""

from datetime import datetime

from src.core.config import settings


def render_magic_link_email(
    *,
    to_email: str,
    login_url: str,
    expires_at: datetime,
) -> tuple[str, str, str]:
    """Render magic link email content.

    Returns:
        (subject, html_body, plain_body)
    """
    subject = f"Sign in to {settings.PROJECT_NAME}"
    expires_str = expires_at.strftime("%Y-%m-%d %H:%M UTC")

    html_body = f"""
    <!DOCTYPE html>
    <html>
    <head><meta charset="utf-8"></head>
    <body style="font-family: -apple-system, 'Segoe UI', Roboto, Arial, sans-serif; max-width: 560px; margin: 0 auto; padding: 20px;">
        <h1 style="font-size: 20px; color: #333;">Sign in to {settings.PROJECT_NAME}</h1>
        <p style="color: #555;">Use the button below to sign in and continue logging your hours.</p>
        <p style="text-align: center; padding: 16px 0;">
            <a href="{login_url}" style="display: inline-block; padding: 12px 24px; background: #1a73e8; color: #fff; text-decoration: none; border-radius: 6px;">
                Sign in
            </a>
        </p>
        <p style="color: #999; font-size: 12px;">This link expires at {expires_str} and can be used once.</p>
        <p style="color: #999; font-size: 12px; word-break: break-all;">{login_url}</p>
        <p style="color: #999; font-size: 12px;">If you did not request this email ({to_email}), you can ignore it.</p>
    </body>
    </html>
    """

    plain_body = "\n".join(
        [
            f"Sign in to {settings.PROJECT_NAME}",
            "",
            login_url,
            "",
            f"This link expires at {expires_str} and can be used once.",
            "If you did not request this email, you can ignore it.",
        ]
    )

    return subject, html_body, plain_body
