"""
samaj/adapters/whatsapp_client.py — WhatsApp Cloud API client.

Sends plain text messages through the Meta Graph API
(``POST {api_url}/{phone_number_id}/messages``).
"""

from __future__ import annotations

import asyncio
import logging
import re

import httpx

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"[^0-9]")


def format_phone(phone: str) -> str:
    """Graph API expects digits only (country code included, no ``+``)."""
    return _NON_DIGITS.sub("", phone)


def format_message(title: str, body: str) -> str:
    return f"*{title}*\n\n{body}"


class WhatsAppClient:
    """Thin async wrapper over the Graph API messages endpoint."""

    def __init__(
        self,
        access_token: str,
        phone_number_id: str,
        api_url: str = "https://graph.facebook.com/v18.0",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = f"{api_url.rstrip('/')}/{phone_number_id}/messages"
        self._headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        self._timeout = timeout
        self._transport = transport

    async def send_text(self, client: httpx.AsyncClient, phone: str, title: str, body: str) -> dict:
        """Send one message; raises ``httpx.HTTPStatusError`` on a non-2xx answer."""
        response = await client.post(
            self._url,
            headers=self._headers,
            json={
                "messaging_product": "whatsapp",
                "recipient_type": "individual",
                "to": format_phone(phone),
                "type": "text",
                "text": {"preview_url": False, "body": format_message(title, body)},
            },
        )
        if response.is_error:
            logger.error("WhatsApp send to %s failed: %s", phone, response.text)
        response.raise_for_status()
        return response.json()

    async def send_many(self, phones: list[str], title: str, body: str) -> dict:
        """
        Send the same message to every number concurrently.

        Returns:
            dict with ``sent``, ``failed`` and ``total`` counters.
        """
        if not phones:
            return {"sent": 0, "failed": 0, "total": 0}
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            results = await asyncio.gather(
                *(self.send_text(client, p, title, body) for p in phones),
                return_exceptions=True,
            )
        failed = sum(1 for r in results if isinstance(r, BaseException))
        for phone, r in zip(phones, results):
            if isinstance(r, BaseException):
                logger.warning("WhatsApp delivery to %s failed: %s", phone, r)
        return {"sent": len(phones) - failed, "failed": failed, "total": len(phones)}
