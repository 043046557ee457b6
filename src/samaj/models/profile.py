"""
samaj/models/profile.py — Member profile schemas.

The profile row is one-to-one with an account of the Identity Store and
carries the lineage attributes collected during verification.
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field, model_validator

from samaj.models.common import SamajBase
from samaj.models.enums import VerificationStatus

MOBILE_PATTERN = r"^\+?[0-9]+$"
OPTIONAL_MOBILE_PATTERN = r"^\+?[0-9]*$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

LINEAGE_FIELDS = (
    "gotra",
    "father_name",
    "native_village",
    "reference_person",
    "reference_mobile",
)


class Profile(SamajBase):
    """Stored member profile."""
    id: UUID
    name: str
    mobile: str
    email: str | None = None
    gotra: str | None = None
    father_name: str | None = None
    native_village: str | None = None
    reference_person: str | None = None
    reference_mobile: str | None = None
    avatar_url: str | None = None
    verification_status: VerificationStatus = VerificationStatus.NONE
    rejection_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @model_validator(mode="after")
    def _reason_only_when_rejected(self) -> "Profile":
        if self.rejection_reason is not None and self.verification_status != VerificationStatus.REJECTED:
            raise ValueError("rejection_reason is only allowed on a rejected profile")
        return self

    @property
    def is_verified(self) -> bool:
        return self.verification_status == VerificationStatus.VERIFIED


class ProfileUpdate(SamajBase):
    """Contact details edit. Lineage fields change only through a verification submission."""
    name: str | None = Field(default=None, min_length=2, max_length=100)
    mobile: str | None = Field(default=None, min_length=10, max_length=15, pattern=MOBILE_PATTERN)
    email: str | None = Field(default=None, max_length=255, pattern=EMAIL_PATTERN)
    avatar_url: str | None = Field(default=None, max_length=500)


class VerificationSubmit(SamajBase):
    """Lineage form submitted by a member. Name, mobile and gotra are required."""
    name: str = Field(..., min_length=2, max_length=100, examples=["Ramesh Sharma"])
    mobile: str = Field(..., min_length=10, max_length=15, pattern=MOBILE_PATTERN, examples=["+919876543210"])
    gotra: str = Field(..., min_length=1, max_length=100, examples=["Bharadwaj"])
    father_name: str | None = Field(default=None, max_length=100)
    native_village: str | None = Field(default=None, max_length=200)
    reference_person: str | None = Field(default=None, max_length=100)
    reference_mobile: str | None = Field(default=None, max_length=15, pattern=OPTIONAL_MOBILE_PATTERN)


class RejectRequest(SamajBase):
    """Admin rejection; the reason is shown to the member."""
    reason: str = Field(..., min_length=1, max_length=500, examples=["Gotra mismatch"])


class NotificationSettings(SamajBase):
    """WhatsApp opt-in of a member. Broadcasts and verification updates go to this number."""
    whatsapp_number: str | None = Field(default=None, max_length=15, pattern=OPTIONAL_MOBILE_PATTERN)
    whatsapp_notifications: bool = True
