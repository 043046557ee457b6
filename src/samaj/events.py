"""
samaj/events.py — NATS event publisher.

Publishes domain events of the membership service:
    • ``samaj.member.registered``          — account + profile created
    • ``samaj.verification.submitted``     — member sent the lineage form
    • ``samaj.verification.approved``      — admin approved a profile
    • ``samaj.verification.rejected``      — admin rejected a profile
    • ``samaj.profile.deleted``            — admin removed a profile

Graceful degradation: when NATS is unreachable the event is skipped with
a warning in the log; the business operation is never blocked.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import nats
from nats.aio.client import Client as NATSClient

from samaj.config import get_settings

logger = logging.getLogger(__name__)

# ── Singleton NATS connection ─────────────────────────────────────────────

_nc: NATSClient | None = None


async def connect() -> NATSClient | None:
    """Connects to NATS unless already connected."""
    global _nc
    if _nc is not None and _nc.is_connected:
        return _nc
    settings = get_settings()
    try:
        _nc = await nats.connect(
            settings.nats_url, connect_timeout=2, max_reconnect_attempts=0,
        )
        logger.info("NATS publisher connected: %s", settings.nats_url)
        return _nc
    except Exception as exc:
        logger.warning("NATS connect failed (events will be skipped): %s", exc)
        _nc = None
        return None


async def disconnect() -> None:
    """Closes the NATS connection."""
    global _nc
    if _nc and _nc.is_connected:
        await _nc.drain()
        logger.info("NATS publisher disconnected")
    _nc = None


# ── Publishing ───────────────────────────────────────────────────────────

async def publish(subject: str, data: dict[str, Any]) -> None:
    """
    Publishes a JSON event.

    Only an already established connection is used; ``connect()`` is called
    from the application lifespan.

    Args:
        subject: Subject of the message (e.g. ``samaj.verification.approved``).
        data: Payload, serialised to JSON.
    """
    nc = _nc
    if nc is None or not nc.is_connected:
        logger.debug("NATS unavailable — skipping event %s", subject)
        return
    try:
        payload = json.dumps(data, default=str).encode("utf-8")
        await nc.publish(subject, payload)
        logger.info("NATS event published: %s", subject)
    except Exception as exc:
        logger.warning("NATS publish failed for %s: %s", subject, exc)


# ── Domain helpers ───────────────────────────────────────────────────────

async def emit_member_registered(member_id: str, email: str) -> None:
    """Event: new member registered."""
    await publish("samaj.member.registered", {
        "event": "member.registered",
        "member_id": member_id,
        "email": email,
    })


async def emit_verification_changed(
    member_id: str, status: str, actor_id: str, reason: str | None = None,
) -> None:
    """Event: verification state of a profile changed."""
    event = {
        "pending": "submitted",
        "verified": "approved",
        "rejected": "rejected",
    }.get(status, status)
    await publish(f"samaj.verification.{event}", {
        "event": f"verification.{event}",
        "member_id": member_id,
        "status": status,
        "actor_id": actor_id,
        "reason": reason,
    })


async def emit_profile_deleted(member_id: str, actor_id: str) -> None:
    """Event: profile removed by an administrator."""
    await publish("samaj.profile.deleted", {
        "event": "profile.deleted",
        "member_id": member_id,
        "actor_id": actor_id,
    })
