"""Resend delivery for :class:`OutboundEmail` messages."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any

import resend

from storefront.services._shared.ports.email_sender import EmailSender, OutboundEmail

logger = logging.getLogger(__name__)

# ``resend.api_key`` is module state; swaps happen under this lock.
_key_lock = threading.Lock()


class ResendDeliveryError(RuntimeError):
    """Resend accepted the call but returned no message id."""


class ResendEmailSender(EmailSender):
    """
    Sends through the Resend HTTP API.

    :param api_key: Resend API key.
    :param sender: ``From`` header, e.g. ``"Storefront <no-reply@shop.example>"``.
    """

    def __init__(self, *, api_key: str, sender: str) -> None:
        self.api_key = (api_key or "").strip()
        self.sender = sender

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> ResendEmailSender:
        return cls(
            api_key=str(config.get("RESEND_API_KEY") or ""),
            sender=str(config.get("MAIL_DEFAULT_SENDER") or "no-reply@storefront.local"),
        )

    def payload(self, message: OutboundEmail) -> dict[str, Any]:
        params: dict[str, Any] = {
            "from": self.sender,
            "to": [message.to],
            "subject": message.subject,
            "text": message.body,
        }
        if message.html:
            params["html"] = message.html
        return params

    def send(self, message: OutboundEmail) -> None:
        """
        :raises ResendDeliveryError: When no API key is configured or the
            response carries no message id.
        :raises resend.exceptions.ResendError: On API errors.
        """
        if not self.api_key:
            raise ResendDeliveryError("Resend API key is not configured.")

        params = self.payload(message)
        with _key_lock:
            previous = getattr(resend, "api_key", None)
            resend.api_key = self.api_key
            try:
                response = resend.Emails.send(params)
            finally:
                resend.api_key = previous

        message_id = response.get("id") if isinstance(response, dict) else None
        if not message_id:
            raise ResendDeliveryError(f"Unexpected Resend response: {response!r}")
        logger.debug("Email accepted by Resend", extra={"message_id": message_id})
