"""
samaj/services/notifications.py — Member notification dispatcher.

``notify(recipient, title, body)`` is best-effort: it resolves the WhatsApp
number(s) of the recipient (one member or ``BROADCAST``), hands the message
to the WhatsApp adapter and reports counters. It never raises; failures are
logged and must not block the state transition that triggered them.
"""

from __future__ import annotations

import logging
from typing import Final
from uuid import UUID

from samaj.adapters.whatsapp_client import WhatsAppClient
from samaj.config import get_settings
from samaj.db.repositories import subscription_repo

logger = logging.getLogger(__name__)

BROADCAST: Final = "broadcast"


# ═══════════════════════════════════════════════════════════════════════════
# Message texts
# ═══════════════════════════════════════════════════════════════════════════


def approval_message(name: str | None) -> tuple[str, str]:
    return (
        "Verification Approved! ✅",
        f"Congratulations {name or 'Member'}! Your verification has been approved. "
        "You now have full access to all community features including live streams, "
        "full member profiles, and exclusive content.",
    )


def rejection_message(name: str | None, reason: str) -> tuple[str, str]:
    return (
        "Verification Update",
        f"Dear {name or 'Member'}, your verification request could not be approved.\n\n"
        f"Reason: {reason}\n\n"
        "Please update your profile and resubmit for verification.",
    )


# ═══════════════════════════════════════════════════════════════════════════
# Dispatcher
# ═══════════════════════════════════════════════════════════════════════════


class NotificationDispatcher:
    """Sends member notifications over WhatsApp."""

    def __init__(self, client: WhatsAppClient | None = None) -> None:
        self._client = client

    @classmethod
    def from_settings(cls) -> "NotificationDispatcher":
        settings = get_settings()
        if not settings.whatsapp_enabled:
            logger.warning("WhatsApp credentials not configured — notifications disabled")
            return cls(None)
        return cls(WhatsAppClient(
            access_token=settings.whatsapp_access_token,
            phone_number_id=settings.whatsapp_phone_number_id,
            api_url=settings.whatsapp_api_url,
            timeout=settings.whatsapp_timeout_seconds,
        ))

    async def _recipients(self, recipient: UUID | str) -> list[str]:
        if recipient == BROADCAST:
            return await subscription_repo.list_whatsapp_numbers()
        number = await subscription_repo.get_whatsapp_number(recipient)
        return [number] if number else []

    async def notify(self, recipient: UUID | str, title: str, body: str) -> dict:
        """
        Deliver ``title``/``body`` to a member or to every subscriber.

        Returns:
            dict with ``sent``, ``failed``, ``total`` (and ``skipped`` when
            nothing was attempted).
        """
        if self._client is None:
            logger.info("Notification skipped (disabled): %s -> %s", title, recipient)
            return {"sent": 0, "failed": 0, "total": 0, "skipped": "disabled"}
        try:
            phones = await self._recipients(recipient)
            if not phones:
                logger.info("No WhatsApp subscriber for %s — notification skipped", recipient)
                return {"sent": 0, "failed": 0, "total": 0, "skipped": "no_recipient"}
            result = await self._client.send_many(phones, title, body)
        except Exception as exc:
            logger.error("Notification to %s failed: %s", recipient, exc)
            return {"sent": 0, "failed": 1, "total": 1}
        logger.info(
            "Notification '%s' to %s: %d sent, %d failed",
            title, recipient, result["sent"], result["failed"],
        )
        return result


# ═══════════════════════════════════════════════════════════════════════════════
# Singleton
# ═══════════════════════════════════════════════════════════════════════════════

_dispatcher: NotificationDispatcher | None = None


def get_notification_dispatcher() -> NotificationDispatcher:
    """Return the process-wide dispatcher, built from settings on first use."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher.from_settings()
    return _dispatcher


def set_notification_dispatcher(dispatcher: NotificationDispatcher | None) -> None:
    """Replace the process-wide dispatcher (``None`` rebuilds it lazily)."""
    global _dispatcher
    _dispatcher = dispatcher
