"""
samaj/services/profile_service.py — Member profile reads, contact edits
and notification settings.
"""

from __future__ import annotations

import logging
from uuid import UUID

from samaj.db.repositories import profile_repo, subscription_repo
from samaj.exceptions import NotFoundError, ValidationError
from samaj.models.profile import NotificationSettings, Profile, ProfileUpdate

logger = logging.getLogger(__name__)


async def get_profile(member_id: UUID) -> Profile:
    row = await profile_repo.get_profile(member_id)
    if not row:
        raise NotFoundError("Profile", str(member_id))
    return Profile(**row)


async def update_contact_details(member_id: UUID, data: ProfileUpdate) -> Profile:
    """Change name / mobile / email / avatar. The verification state is untouched."""
    fields = data.model_dump(exclude_unset=True, exclude_none=True)
    row = await profile_repo.update_profile(member_id, fields)
    if not row:
        raise NotFoundError("Profile", str(member_id))
    logger.info("Profile %s updated: %s", member_id, sorted(fields))
    return Profile(**row)


async def set_notification_settings(member_id: UUID, data: NotificationSettings) -> NotificationSettings:
    """Store the member's WhatsApp opt-in; enabling it needs a number."""
    number = data.whatsapp_number or None
    if data.whatsapp_notifications and number is None:
        raise ValidationError(
            "whatsapp_number: required to enable WhatsApp notifications",
            details={"fields": ["whatsapp_number"]},
        )
    await subscription_repo.upsert_subscription(member_id, number, data.whatsapp_notifications)
    logger.info(
        "Notification settings of %s: whatsapp=%s", member_id, data.whatsapp_notifications,
    )
    return NotificationSettings(whatsapp_number=number, whatsapp_notifications=data.whatsapp_notifications)
