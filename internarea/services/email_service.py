"""
InternArea - Email Service

Supports two delivery methods:
    1. Resend HTTP API (recommended for cloud platforms like Render/Railway)
    2. SMTP fallback (for local dev or self-hosted with Gmail, SES, etc.)

Resend is checked first. If RESEND_API_KEY is not set, falls back to SMTP.
If neither is configured the service reports "mock" mode and sends nothing.
"""
import logging
from html import escape
from typing import Optional

import httpx

from ..config import settings

logger = logging.getLogger("internarea.email")

MODE_RESEND = "resend"
MODE_SMTP = "smtp"
MODE_MOCK = "mock"


class EmailService:
    """Async email service with Resend HTTP API and SMTP fallback."""

    RESEND_API_URL = "https://api.resend.com/emails"

    def is_configured(self) -> bool:
        """Check if any email backend is configured."""
        return bool(
            settings.email.resend_api_key
            or (settings.email.smtp_host and settings.email.smtp_username)
        )

    def _use_resend(self) -> bool:
        """Check if Resend API key is set."""
        return bool(settings.email.resend_api_key)

    def delivery_mode(self) -> str:
        if not self.is_configured():
            return MODE_MOCK
        return MODE_RESEND if self._use_resend() else MODE_SMTP

    async def _send_via_resend(
        self, to_email: str, subject: str, html_body: str, text_body: Optional[str] = None
    ) -> bool:
        """Send email via Resend HTTP API."""
        payload = {
            "from": f"{settings.email.from_name} <{settings.email.from_email}>",
            "to": [to_email],
            "subject": subject,
            "html": html_body,
        }
        if text_body:
            payload["text"] = text_body

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.RESEND_API_URL,
                    headers={
                        "Authorization": f"Bearer {settings.email.resend_api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                    timeout=10.0,
                )

            if response.status_code == 200:
                logger.info("Email sent via Resend to %s: %s", to_email, subject)
                return True
            else:
                logger.error(
                    "Resend API error (%s): %s", response.status_code, response.text
                )
                return False
        except httpx.HTTPError as e:
            logger.error("Failed to send email via Resend to %s: %s", to_email, e)
            return False

    async def _send_via_smtp(
        self, to_email: str, subject: str, html_body: str, text_body: Optional[str] = None
    ) -> bool:
        """Send email via SMTP."""
        import aiosmtplib
        from email.mime.text import MIMEText
        from email.mime.multipart import MIMEMultipart

        message = MIMEMultipart("alternative")
        message["From"] = f"{settings.email.from_name} <{settings.email.from_email}>"
        message["To"] = to_email
        message["Subject"] = subject

        if text_body:
            message.attach(MIMEText(text_body, "plain"))
        message.attach(MIMEText(html_body, "html"))

        try:
            await aiosmtplib.send(
                message,
                hostname=settings.email.smtp_host,
                port=settings.email.smtp_port,
                username=settings.email.smtp_username,
                password=settings.email.smtp_password,
                start_tls=settings.email.smtp_use_tls,
            )
            logger.info("Email sent via SMTP to %s: %s", to_email, subject)
            return True
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email via SMTP to %s: %s", to_email, e)
            return False

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
    ) -> bool:
        """Send an email. Uses Resend if configured, otherwise SMTP."""
        if not self.is_configured():
            logger.warning("Email not configured, skipping send to %s", to_email)
            return False

        if self._use_resend():
            return await self._send_via_resend(to_email, subject, html_body, text_body)
        else:
            return await self._send_via_smtp(to_email, subject, html_body, text_body)

    async def send_new_password_email(
        self, to_email: str, new_password: str, user_name: str = ""
    ) -> bool:
        """Send a freshly generated password."""
        greeting = f"Hi {escape(user_name)}," if user_name else "Hi,"

        html = f"""
        <div style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif;
                     max-width: 480px; margin: 0 auto; padding: 24px;">
            <h2 style="color: #2563eb; margin-bottom: 16px;">Your new password</h2>
            <p>{greeting}</p>
            <p>We received a request to reset your InternArea password. Your new password is:</p>
            <p style="text-align: center; margin: 32px 0; font-size: 20px; font-weight: 600;
                      letter-spacing: 2px;">
                {escape(new_password)}
            </p>
            <hr style="border: none; border-top: 1px solid #e5e7eb; margin: 24px 0;">
            <p style="color: #9ca3af; font-size: 12px;">
                Passwords can be reset once per day. If you didn't request this, contact support.
            </p>
        </div>
        """
        text = f"Your new password is: {new_password}"
        return await self.send_email(to_email, "Your new password", html, text)


# Global instance
email_service = EmailService()
