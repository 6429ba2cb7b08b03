"""
Mail service for transactional emails (password reset links).
Renders an HTML body with a plain-text alternative and delivers it over SMTP.
"""

import html
import logging
import smtplib
from email.message import EmailMessage
from typing import Optional, Tuple

from starlette.concurrency import run_in_threadpool

from storefront.config import Settings
from storefront.models.user import User

logger = logging.getLogger(__name__)


class MailService:
    """
    SMTP mail transport, built once at startup and shared by all requests.
    Without a configured host, messages are logged and dropped.
    """

    def __init__(
        self,
        host: Optional[str],
        port: int,
        username: Optional[str] = None,
        password: Optional[str] = None,
        sender: str = "Storefront Directory <noreply@storefront.local>",
        use_tls: bool = True,
        timeout: float = 30.0
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.use_tls = use_tls
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "MailService":
        return cls(
            host=settings.mail_host,
            port=settings.mail_port,
            username=settings.mail_user,
            password=settings.mail_pass,
            sender=settings.mail_from,
            use_tls=settings.mail_use_tls,
        )

    @staticmethod
    def render_password_reset(user: User, reset_url: str) -> Tuple[str, str]:
        """Return (html, text) bodies of the password reset message."""
        name = html.escape(user.name)
        url = html.escape(reset_url, quote=True)
        html_content = f"""
        <div style="font-family: Arial, sans-serif; padding: 20px; color: #333;">
            <h2 style="margin: 0 0 20px;">Password Reset</h2>
            <p>Hello {name},</p>
            <p>You have requested a password reset. Please click the following button to continue.</p>
            <p>
                <a href="{url}" style="display: inline-block; background-color: #303030; color: white; padding: 12px 24px; text-decoration: none; border-radius: 4px;">Reset my Password</a>
            </p>
            <p>If you can't click the button, visit <a href="{url}">{url}</a></p>
            <p><strong>This link will expire in 1 hour.</strong></p>
            <p>If you didn't request this email, please ignore it.</p>
        </div>
        """
        text_content = (
            f"Hello {user.name},\n\n"
            "You have requested a password reset. Visit the following link to continue:\n\n"
            f"{reset_url}\n\n"
            "This link will expire in 1 hour.\n"
            "If you didn't request this email, please ignore it.\n"
        )
        return html_content, text_content

    def _build_message(self, to: str, subject: str, html_content: str, text_content: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text_content)
        message.add_alternative(html_content, subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password or "")
            smtp.send_message(message)

    async def send(self, to: str, subject: str, html_content: str, text_content: str) -> bool:
        """
        Send one message.

        Returns:
            True if the message was handed to the SMTP server, False if mail is not configured
        """
        if not self.host:
            logger.warning(f"MAIL_HOST is not set, email '{subject}' to {to} not sent")
            return False

        message = self._build_message(to, subject, html_content, text_content)
        await run_in_threadpool(self._deliver, message)
        logger.info(f"Sent email '{subject}' to {to}")
        return True

    async def send_password_reset(self, user: User, reset_url: str) -> bool:
        html_content, text_content = self.render_password_reset(user, reset_url)
        return await self.send(user.email, "Password reset", html_content, text_content)
