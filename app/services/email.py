"""SMTP email transport."""

import logging
import smtplib
import ssl
from email.message import EmailMessage

from app.config import get_settings

logger = logging.getLogger("user_accounts")


class EmailDeliveryError(Exception):
    """Raised when a message could not be handed to the SMTP server."""


class EmailService:
    """Sends plain-text email through the configured SMTP server.

    Port 465 uses implicit TLS; any other port upgrades with STARTTLS when
    SMTP_USE_TLS is on. Login happens only when both username and password
    are configured.
    """

    def __init__(self) -> None:
        settings = get_settings()
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.username = settings.SMTP_USERNAME
        self.password = settings.SMTP_PASSWORD
        self.from_address = settings.SMTP_FROM
        self.use_tls = settings.SMTP_USE_TLS
        self.timeout = settings.SMTP_TIMEOUT_SECONDS

    def build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        """Build the MIME message for a plain-text email."""
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.from_address
        msg["To"] = to
        msg.set_content(body)
        return msg

    def send_email(self, to: str, subject: str, body: str) -> None:
        """Send an email. Raises EmailDeliveryError on any transport failure."""
        msg = self.build_message(to, subject, body)
        try:
            if self.port == 465:
                context = ssl.create_default_context()
                with smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout) as server:
                    self._deliver(server, msg)
            else:
                with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                    server.ehlo()
                    if self.use_tls:
                        server.starttls(context=ssl.create_default_context())
                        server.ehlo()
                    self._deliver(server, msg)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailDeliveryError(f"Could not send email to {to}: {e}") from e

        logger.info("Email '%s' sent to %s", subject, to)

    def _deliver(self, server: smtplib.SMTP, msg: EmailMessage) -> None:
        if self.username and self.password:
            server.login(self.username, self.password)
        server.send_message(msg)


_email_service: EmailService | None = None


def get_email_service() -> EmailService:
    """Get singleton email service instance."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
