"""
samaj/db/repositories/subscription_repo.py — WhatsApp notification subscriptions.
"""

from __future__ import annotations

from uuid import UUID

from samaj.database import get_connection


async def get_whatsapp_number(member_id: UUID) -> str | None:
    """WhatsApp number of a member who opted in, else None."""
    async with get_connection() as conn:
        return await conn.fetchval(
            """
            SELECT whatsapp_number FROM notification_subscriptions
            WHERE user_id = $1 AND whatsapp_notifications = TRUE
            """,
            member_id,
        )


async def list_whatsapp_numbers() -> list[str]:
    """Numbers of every opted-in subscriber (broadcast)."""
    async with get_connection() as conn:
        rows = await conn.fetch(
            """
            SELECT whatsapp_number FROM notification_subscriptions
            WHERE whatsapp_notifications = TRUE AND whatsapp_number IS NOT NULL
            """
        )
        return [r["whatsapp_number"] for r in rows]


async def upsert_subscription(
    member_id: UUID, whatsapp_number: str | None, whatsapp_notifications: bool = True,
) -> None:
    """Create or replace the subscription of a member."""
    async with get_connection() as conn:
        await conn.execute(
            """
            INSERT INTO notification_subscriptions (user_id, whatsapp_number, whatsapp_notifications)
            VALUES ($1, $2, $3)
            ON CONFLICT (user_id) DO UPDATE
            SET whatsapp_number = EXCLUDED.whatsapp_number,
                whatsapp_notifications = EXCLUDED.whatsapp_notifications
            """,
            member_id, whatsapp_number, whatsapp_notifications,
        )
