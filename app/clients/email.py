"""Transactional email delivery through the Resend HTTP API."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from app.clients.google_auth import HTTP_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when the email provider rejects or fails to accept a message."""


class ResendEmailClient:
    """Send single HTML messages."""

    _BASE_URL = "https://api.resend.com/emails"

    def __init__(
        self,
        *,
        api_key: str,
        from_email: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._from_email = from_email
        self._transport = transport

    async def send(self, *, to: str, subject: str, html: str) -> str:
        """Send a message and return the provider's message id."""
        payload = {
            "from": self._from_email,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            async with httpx.AsyncClient(
                timeout=HTTP_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                response = await client.post(self._BASE_URL, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise EmailDeliveryError(f"Email request failed: {exc}") from exc

        if response.is_error:
            raise EmailDeliveryError(
                f"Email provider returned {response.status_code}: {response.text}"
            )

        try:
            message_id = response.json().get("id", "")
        except ValueError:
            logger.warning("Email provider accepted the message without a JSON body")
            message_id = ""
        logger.info("Email sent to %s (message id %s)", to, message_id)
        return message_id


__all__ = ["EmailDeliveryError", "ResendEmailClient"]
