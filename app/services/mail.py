"""Outbound notifications for account events.

Delivery is fire-and-forget: a failed send is logged and never surfaces to
the request that triggered it.
"""

import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

from app.config import Settings

logger = logging.getLogger("cloud_locker")


class Notifier(Protocol):
    def send(self, to_email: str, subject: str, text_body: str) -> None: ...


class LogNotifier:
    """Writes messages to the server log instead of sending them."""

    def send(self, to_email: str, subject: str, text_body: str) -> None:
        logger.info("MAIL to=%s subject=%r\n%s", to_email, subject, text_body)


class SmtpNotifier:
    """Sends plain-text mail through an SMTP relay (SSL or STARTTLS)."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_email: str,
        use_ssl: bool = False,
        use_tls: bool = True,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email or username
        self.use_ssl = use_ssl
        self.use_tls = use_tls

    def _connect(self) -> smtplib.SMTP:
        if not self.host:
            raise RuntimeError("SMTP_HOST is not configured")
        if self.use_ssl:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=30)
        server = smtplib.SMTP(self.host, self.port, timeout=30)
        if self.use_tls:
            server.starttls()
        return server

    def send(self, to_email: str, subject: str, text_body: str) -> None:
        msg = EmailMessage()
        msg["From"] = self.from_email
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.set_content(text_body)

        try:
            server = self._connect()
            try:
                if self.username:
                    server.login(self.username, self.password)
                server.send_message(msg)
            finally:
                server.quit()
        except (OSError, RuntimeError, smtplib.SMTPException):
            logger.warning("Failed to send %r to %s", subject, to_email, exc_info=True)


def build_notifier(settings: Settings) -> Notifier:
    """Select the notifier configured by MAIL_BACKEND."""
    if settings.MAIL_BACKEND == "smtp":
        return SmtpNotifier(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            from_email=settings.SMTP_FROM_EMAIL,
            use_ssl=settings.SMTP_USE_SSL,
            use_tls=settings.SMTP_USE_TLS,
        )
    return LogNotifier()


def reset_requested_message(token: str, expire_minutes: int) -> tuple[str, str]:
    return (
        "Password Reset Request",
        f"You requested a password reset. Your reset token is: {token}\n\n"
        f"This token will expire in {expire_minutes} minutes.\n"
        "If you did not request a password reset, please ignore this email.",
    )


def reset_completed_message() -> tuple[str, str]:
    return (
        "Password Reset Successful",
        "Your password has been successfully reset.\n\n"
        "If you did not reset your password, please contact support immediately.",
    )
