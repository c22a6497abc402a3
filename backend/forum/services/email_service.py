"""
Notification sink for password reset emails.

Two senders exist: SMTP for real deployments and a console sender that
only logs the reset link (development default). Senders never raise;
failures come back as ``EmailResult(success=False)``.
"""
import asyncio
import logging
import smtplib
from datetime import datetime
from email.message import EmailMessage
from typing import Optional

from pydantic import BaseModel

from forum.config import Settings, get_settings

logger = logging.getLogger(__name__)


class EmailResult(BaseModel):
    """Outcome of one dispatch."""
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class EmailSender:
    """Base notification sink."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def reset_url(self, token: str) -> str:
        base = self.settings.public_base_url.rstrip("/")
        return f"{base}/auth/reset-password?token={token}"

    def build_reset_message(self, recipient: str, token: str, expires_at: datetime) -> EmailMessage:
        reset_url = self.reset_url(token)
        expiration = expires_at.strftime("%Y-%m-%d %H:%M UTC")

        message = EmailMessage()
        message["From"] = self.settings.mail_from
        message["To"] = recipient
        message["Subject"] = "Password Reset Request - Forum"
        message.set_content(
            "Password Reset Request\n\n"
            "We received a request to reset the password of your forum account.\n\n"
            f"To reset your password, visit this link:\n{reset_url}\n\n"
            f"This link expires on {expiration} and can only be used once.\n\n"
            "If you did not request this password reset, ignore this email.\n"
        )
        message.add_alternative(
            f"""\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2>Password Reset Request</h2>
  <p>We received a request to reset the password of your forum account.</p>
  <p><a href="{reset_url}">Reset my password</a></p>
  <p><strong>Important:</strong> this link expires on <strong>{expiration}</strong>
  and can only be used once.</p>
  <p style="color: #777; font-size: 12px;">If you did not request this password
  reset, ignore this email. Your password will remain unchanged.</p>
</div>
""",
            subtype="html",
        )
        return message

    async def send_password_reset_email(
        self, recipient: str, token: str, expires_at: datetime
    ) -> EmailResult:
        raise NotImplementedError


class ConsoleEmailSender(EmailSender):
    """Logs the reset link instead of sending mail."""

    async def send_password_reset_email(
        self, recipient: str, token: str, expires_at: datetime
    ) -> EmailResult:
        logger.info(
            f"[console email] password reset for {recipient}: "
            f"{self.reset_url(token)} (expires {expires_at.isoformat()})"
        )
        return EmailResult(success=True, message_id="console")


class SmtpEmailSender(EmailSender):
    """Sends mail through an SMTP relay, off the event loop."""

    def _deliver(self, message: EmailMessage) -> str:
        settings = self.settings
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as smtp:
            if settings.smtp_use_tls:
                smtp.starttls()
            if settings.smtp_username:
                smtp.login(settings.smtp_username, settings.smtp_password or "")
            smtp.send_message(message)
        return message.get("Message-ID") or ""

    async def send_password_reset_email(
        self, recipient: str, token: str, expires_at: datetime
    ) -> EmailResult:
        message = self.build_reset_message(recipient, token, expires_at)
        try:
            message_id = await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending password reset email to {recipient}: {e}")
            return EmailResult(success=False, error=str(e))

        logger.info(f"Password reset email sent to {recipient}")
        return EmailResult(success=True, message_id=message_id)


def get_email_sender(settings: Optional[Settings] = None) -> EmailSender:
    """Build the sender selected by ``settings.email_backend``."""
    settings = settings or get_settings()
    if settings.email_backend == "smtp":
        return SmtpEmailSender(settings)
    return ConsoleEmailSender(settings)
