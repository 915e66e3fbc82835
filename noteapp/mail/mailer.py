"""Mail delivery abstraction layer for SMTP and compatible services."""

import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional

from noteapp.config import settings
from noteapp.services.exceptions import MailDeliveryError

logger = logging.getLogger(__name__)


class Mailer(ABC):
    """
    Abstract interface for sending plain-text email.

    Allows swapping SMTP for an HTTP mail API (SES, Resend, ...) or a
    recording fake by implementing this interface.
    """

    @abstractmethod
    def send(self, recipient: str, subject: str, body: str) -> None:
        """
        Deliver a message.

        Args:
            recipient: Destination email address
            subject: Subject line
            body: Plain-text body

        Raises:
            MailDeliveryError: If the message could not be handed off
        """
        pass


class SmtpMailer(Mailer):
    """SMTP implementation of mail delivery (STARTTLS + login)."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        sender_name: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the SMTP mailer.

        Args:
            host: SMTP server host
            port: SMTP server port (STARTTLS)
            username: Account used to log in and as the From address
            password: Account password or app password
            sender_name: Display name for the From header
            timeout: Socket timeout in seconds
        """
        self.host = host or settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.username = username or settings.EMAIL_USER
        self.password = password or settings.EMAIL_PASS
        self.sender_name = sender_name or settings.EMAIL_FROM_NAME
        self.timeout = timeout or settings.SMTP_TIMEOUT

    def build_message(self, recipient: str, subject: str, body: str) -> EmailMessage:
        """Build the MIME message sent by :meth:`send`."""
        message = EmailMessage()
        message["From"] = formataddr((self.sender_name, self.username or ""))
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(body)
        return message

    def send(self, recipient: str, subject: str, body: str) -> None:
        if not (self.username and self.password):
            raise MailDeliveryError(recipient, "email credentials are not configured")

        message = self.build_message(recipient, subject, body)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                smtp.starttls()
                smtp.login(self.username, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise MailDeliveryError(recipient, str(e)) from e

        logger.info(f"Sent email '{subject}' to {recipient}")
