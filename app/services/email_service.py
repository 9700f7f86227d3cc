"""
TrackMyStartup - Email Service

Handles transactional email sending over SMTP. Without an SMTP server
configured, messages are logged instead of sent.
"""

import asyncio
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional

from app.config import settings

logger = logging.getLogger(__name__)


class EmailProvider:
    """Email provider types."""
    SMTP = "smtp"
    MOCK = "mock"


@dataclass
class EmailMessage:
    """Email message data structure."""
    to: List[str]
    subject: str
    body_text: str
    body_html: Optional[str] = None
    reply_to: Optional[str] = None


class EmailService:
    """Service for sending transactional emails."""

    def __init__(self):
        self.from_email = settings.email_from
        self.from_name = settings.mail_from_name

        self.smtp_host = settings.mail_server
        self.smtp_port = settings.mail_port
        self.smtp_username = settings.mail_username
        self.smtp_password = settings.mail_password
        self.smtp_use_tls = settings.mail_use_tls

        # Messages handed to the mock provider, newest last
        self.outbox: List[EmailMessage] = []

    @property
    def provider(self) -> str:
        return EmailProvider.SMTP if self.smtp_host else EmailProvider.MOCK

    async def send_email(self, message: EmailMessage) -> bool:
        """
        Send an email using the configured provider.

        Returns:
            True when the message was handed off, False on delivery failure
        """
        if self.provider == EmailProvider.MOCK:
            return self._send_mock(message)

        try:
            await asyncio.to_thread(self._send_via_smtp, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP send failed to {message.to}: {e}")
            return False

        logger.info(f"Email sent via SMTP to {message.to}")
        return True

    def _build_mime(self, message: EmailMessage) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = message.subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = ", ".join(message.to)
        if message.reply_to:
            msg["Reply-To"] = message.reply_to

        msg.attach(MIMEText(message.body_text, "plain"))
        if message.body_html:
            msg.attach(MIMEText(message.body_html, "html"))
        return msg

    def _send_via_smtp(self, message: EmailMessage) -> None:
        msg = self._build_mime(message)
        with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
            if self.smtp_use_tls:
                server.starttls(context=ssl.create_default_context())
            if self.smtp_username and self.smtp_password:
                server.login(self.smtp_username, self.smtp_password)
            server.sendmail(self.from_email, message.to, msg.as_string())

    def _send_mock(self, message: EmailMessage) -> bool:
        """Log the email instead of sending it."""
        self.outbox.append(message)
        logger.info(f"[MOCK EMAIL] To: {message.to} | Subject: {message.subject}")
        logger.debug(f"[MOCK EMAIL] Body: {message.body_text[:200]}...")
        return True

    # ===========================================
    # TRANSACTIONAL EMAILS
    # ===========================================

    async def send_password_reset(self, to_email: str, reset_url: str) -> bool:
        """Send the password reset link."""
        expires = settings.password_reset_expire_minutes
        subject = f"Reset Your Password - {settings.app_name}"

        body_html = f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                <h1 style="color: #2563eb;">Reset Your Password</h1>
                <p>You requested to reset your password. Click the button below to set a new password:</p>
                <p>
                    <a href="{reset_url}"
                       style="display: inline-block; background-color: #2563eb; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px;">
                        Reset Password
                    </a>
                </p>
                <p>This link will expire in {expires} minutes.</p>
                <p>If you didn't request this, you can safely ignore this email.</p>
            </div>
        </body>
        </html>
        """

        body_text = (
            "Reset Your Password\n\n"
            "You requested to reset your password. Visit the link below to set a new password:\n\n"
            f"{reset_url}\n\n"
            f"This link will expire in {expires} minutes.\n\n"
            "If you didn't request this, you can safely ignore this email.\n"
        )

        return await self.send_email(EmailMessage(
            to=[to_email],
            subject=subject,
            body_text=body_text,
            body_html=body_html,
        ))


email_service = EmailService()
