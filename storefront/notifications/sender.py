"""
Transport des notifications: contrat opaque send(to, subject, body).
- EmailJSSender: API REST EmailJS via httpx (timeout borné).
- LoggingSender: utilisé quand EmailJS n'est pas configuré (dev/tests), se contente de logger.
"""
import logging
from typing import Optional, Protocol

import httpx

from storefront import config

logger = logging.getLogger(__name__)

EMAILJS_API_URL = "https://api.emailjs.com/api/v1.0/email/send"

# module storefront.notifications.sender
class NotificationError(Exception):
    """Échec d'envoi d'une notification (jamais remonté au client)."""


class NotificationSender(Protocol):
    async def send(self, to: str, subject: str, body: str) -> None: ...


class EmailJSSender:
    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float | None = None):
        self._client = client
        self.timeout = timeout or config.EMAIL_TIMEOUT_SECONDS

    async def send(self, to: str, subject: str, body: str) -> None:
        payload = {
            "service_id": config.EMAILJS_SERVICE_ID,
            "template_id": config.EMAILJS_ORDER_TEMPLATE_ID,
            "user_id": config.EMAILJS_PUBLIC_KEY,
            "accessToken": config.EMAILJS_PRIVATE_KEY,
            "template_params": {
                "to_email": to,
                "subject": subject,
                "html_content": body,
            },
        }
        try:
            if self._client is not None:
                res = await self._client.post(EMAILJS_API_URL, json=payload, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    res = await client.post(EMAILJS_API_URL, json=payload)
        except httpx.HTTPError as e:
            raise NotificationError(f"EmailJS injoignable: {e}") from e
        if res.status_code >= 300:
            raise NotificationError(f"EmailJS error: {res.status_code} {res.reason_phrase}")


class LoggingSender:
    async def send(self, to: str, subject: str, body: str) -> None:
        logger.info("notification (non envoyée, EmailJS non configuré) to=%s subject=%s", to, subject)


def emailjs_configured() -> bool:
    return all([config.EMAILJS_SERVICE_ID, config.EMAILJS_ORDER_TEMPLATE_ID, config.EMAILJS_PUBLIC_KEY])

def default_sender() -> NotificationSender:
    return EmailJSSender() if emailjs_configured() else LoggingSender()
