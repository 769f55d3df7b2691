"""
Verification email composition and delivery via SendGrid.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from .exceptions import EmailSendFailure

logger = logging.getLogger(__name__)

VERIFICATION_SUBJECT = "Verify Your Email"


@dataclass(frozen=True)
class EmailMessage:
    to: str
    from_email: str
    subject: str
    text: str
    html: str


def build_verification_email(to: str, from_email: str, activation_link: str) -> EmailMessage:
    """Compose the verification email; the link is embedded verbatim in both bodies."""
    return EmailMessage(
        to=to,
        from_email=from_email,
        subject=VERIFICATION_SUBJECT,
        text=f"Please verify your email using this link: {activation_link}",
        html=f'<p>Click <a href="{activation_link}">here</a> to verify your email.</p>',
    )


class EmailClient(ABC):
    @abstractmethod
    def send(self, message: EmailMessage) -> Optional[str]:
        """Send a message, returning the provider message id if one is known."""
        pass


class SendGridEmailClient(EmailClient):
    """SendGrid client for transactional email."""

    def __init__(self, api_key: str, client: Optional[SendGridAPIClient] = None):
        self.client = client or SendGridAPIClient(api_key=api_key)

    def send(self, message: EmailMessage) -> Optional[str]:
        """
        Send an email through the SendGrid v3 mail API.

        Args:
            message: The composed email

        Returns:
            The X-Message-Id header if SendGrid returned one

        Raises:
            EmailSendFailure: on any SDK error or non-2xx response
        """
        mail = Mail(
            from_email=message.from_email,
            to_emails=message.to,
            subject=message.subject,
            plain_text_content=message.text,
            html_content=message.html,
        )

        try:
            response = self.client.send(mail)
        except Exception as e:
            logger.error(f"Failed to send verification email: {str(e)}")
            raise EmailSendFailure(message.to) from e

        if not 200 <= response.status_code < 300:
            logger.error(f"SendGrid rejected email to {message.to} with status {response.status_code}")
            raise EmailSendFailure(message.to)

        message_id = (response.headers or {}).get("X-Message-Id")
        logger.info(f"Verification email sent to {message.to}")
        return message_id
