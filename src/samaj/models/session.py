"""
samaj/models/session.py — Session snapshot and identity schemas.

``SessionState`` is immutable: the session provider replaces the whole
snapshot, so a reader always sees a profile and an admin flag that were
resolved together.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from samaj.models.common import SamajBase
from samaj.models.enums import VerificationStatus
from samaj.models.profile import EMAIL_PATTERN, MOBILE_PATTERN, Profile


class SessionState(BaseModel):
    """Identity token + cached profile + cached admin flag."""

    model_config = ConfigDict(frozen=True)

    member_id: UUID | None = None
    access_token: str | None = None
    profile: Profile | None = None
    is_admin: bool = False
    established_at: datetime | None = None

    @property
    def authenticated(self) -> bool:
        return self.member_id is not None and bool(self.access_token)

    @property
    def verification_status(self) -> VerificationStatus:
        # No profile (not loaded, or fetch failed) counts as unverified.
        if self.profile is None:
            return VerificationStatus.NONE
        return self.profile.verification_status

    @property
    def verified(self) -> bool:
        return self.authenticated and self.verification_status == VerificationStatus.VERIFIED


ANONYMOUS = SessionState()


class SignupRequest(SamajBase):
    """Account creation: credentials plus the mandatory profile fields."""
    email: str = Field(..., min_length=1, max_length=255, pattern=EMAIL_PATTERN, examples=["ramesh@example.com"])
    password: str = Field(..., min_length=8, max_length=100)
    name: str = Field(..., min_length=2, max_length=100)
    mobile: str = Field(..., min_length=10, max_length=15, pattern=MOBILE_PATTERN)


class LoginRequest(SamajBase):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=100)


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class SessionRead(BaseModel):
    """What ``GET /me`` returns."""
    member_id: UUID | None
    authenticated: bool
    verified: bool
    is_admin: bool
    verification_status: VerificationStatus
    profile: Profile | None = None

    @classmethod
    def from_state(cls, state: SessionState) -> "SessionRead":
        return cls(
            member_id=state.member_id,
            authenticated=state.authenticated,
            verified=state.verified,
            is_admin=state.is_admin,
            verification_status=state.verification_status,
            profile=state.profile,
        )
