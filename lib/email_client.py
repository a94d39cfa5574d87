# =============================================================================
# lib/email_client.py - Transactional Email (Resend)
# =============================================================================
# Sends email through the Resend HTTP API. When RESEND_API_KEY is not set the
# message is written to the log instead and treated as delivered, so local
# development works without an email provider.
# =============================================================================

import logging
from dataclasses import dataclass

import httpx

from app.config import settings

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html: str
    text: str
    sender: str


class EmailDeliveryError(Exception):
    """The provider rejected or could not accept a message."""


class EmailClient:
    """Thin client for the Resend API."""

    @staticmethod
    def is_configured() -> bool:
        return bool(settings.RESEND_API_KEY)

    @staticmethod
    def send(message: EmailMessage, timeout: float = 10.0) -> str | None:
        """
        Send a single email.

        Args:
            message: The email to send
            timeout: HTTP timeout in seconds

        Returns:
            Provider message ID, or None when running without an API key

        Raises:
            EmailDeliveryError: If the provider returns an error
        """
        if not EmailClient.is_configured():
            logger.info(
                f"RESEND_API_KEY not set; email to {message.to} logged only. "
                f"Subject: {message.subject}"
            )
            logger.debug(message.text)
            return None

        try:
            response = httpx.post(
                RESEND_API_URL,
                headers={
                    "Authorization": f"Bearer {settings.RESEND_API_KEY}",
                    "Content-Type": "application/json",
                },
                json={
                    "from": message.sender,
                    "to": [message.to],
                    "subject": message.subject,
                    "html": message.html,
                    "text": message.text,
                },
                timeout=timeout,
            )
        except httpx.HTTPError as e:
            raise EmailDeliveryError(f"Request to Resend failed: {e}")

        if response.status_code >= 400:
            raise EmailDeliveryError(
                f"Resend returned {response.status_code}: {response.text[:200]}"
            )

        message_id = response.json().get("id")
        logger.info(f"Email sent to {message.to} (id={message_id})")
        return message_id
