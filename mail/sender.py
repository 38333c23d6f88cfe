"""
Outbound e-mail over SMTP (Gmail by default).

Sending is best-effort: ``send_verification_email`` logs failures and
returns False instead of raising, so a broken mail setup never fails the
request that triggered it.
"""

from __future__ import annotations

import logging
import smtplib
from email.mime.text import MIMEText

from config.settings import Settings

logger = logging.getLogger(__name__)

VERIFICATION_SUBJECT = "Verify your email"
VERIFICATION_BODY = "You have registered successfully. Please verify your email address."


class Mailer:
    def __init__(
        self,
        *,
        host: str,
        port: int,
        username: str,
        password: str,
        sender: str,
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "Mailer":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.gmail_username,
            password=settings.gmail_password,
            sender=settings.mail_sender,
            timeout=settings.smtp_timeout,
        )

    def is_configured(self) -> bool:
        return bool(self.username and self.password)

    def send_verification_email(self, to_address: str) -> bool:
        """Blocking; run it in a worker thread from async code."""
        if not self.is_configured():
            logger.warning(
                "Mail credentials not configured (GMAIL_USERNAME / GMAIL_PASSWORD); "
                "skipping verification email to %s", to_address,
            )
            return False

        try:
            message = MIMEText(VERIFICATION_BODY, "plain")
            message["From"] = self.sender
            message["To"] = to_address
            message["Subject"] = VERIFICATION_SUBJECT

            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.username, self.password)
                server.send_message(message)
        except Exception:
            logger.exception("Failed to send verification email to %r", to_address)
            return False

        logger.info("Verification email sent to %s", to_address)
        return True
