"""
services/mail_service.py
------------------------
SMTP mail transport for budget alert emails.
"""

import smtplib
from email.message import EmailMessage
from typing import Optional

from config import (
    EMAIL_FROM,
    SMTP_HOST,
    SMTP_PASS,
    SMTP_PORT,
    SMTP_STARTTLS,
    SMTP_TIMEOUT_SECONDS,
    SMTP_USER,
)
from utils.errors import MailError
from utils.logger import get_logger

logger = get_logger(__name__)


class MailService:
    """
    Sends HTML emails over SMTP.

    The transport is "unconfigured" when no host or sender is set; callers
    check ``is_configured`` and skip sending instead of failing.
    """

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        sender: Optional[str] = None,
        starttls: Optional[bool] = None,
        timeout: Optional[float] = None,
    ):
        self.host = SMTP_HOST if host is None else host
        self.port = SMTP_PORT if port is None else port
        self.user = SMTP_USER if user is None else user
        self.password = SMTP_PASS if password is None else password
        self.sender = EMAIL_FROM if sender is None else sender
        self.starttls = SMTP_STARTTLS if starttls is None else starttls
        self.timeout = SMTP_TIMEOUT_SECONDS if timeout is None else timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.sender)

    def send(self, recipient: str, subject: str, html: str) -> None:
        """
        Deliver one message.

        Raises:
            MailError: When the transport is unconfigured or SMTP fails.
        """
        if not self.is_configured:
            raise MailError("Mail transport is not configured (SMTP_HOST / EMAIL_FROM).")

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = recipient
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(html, subtype="html")

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                smtp.ehlo()
                if self.starttls:
                    smtp.starttls()
                    smtp.ehlo()
                if self.user and self.password:
                    smtp.login(self.user, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise MailError(f"Could not send mail to {recipient}: {e}") from e

        logger.info(f"Sent '{subject}' to {recipient}")
