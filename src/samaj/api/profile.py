"""
samaj/api/profile.py — Endpoints of the signed-in member.
"""

from fastapi import APIRouter, Depends

from samaj.dependencies import get_current_member, get_session
from samaj.models.profile import NotificationSettings, Profile, ProfileUpdate, VerificationSubmit
from samaj.models.session import SessionRead, SessionState
from samaj.services import profile_service, verification

router = APIRouter(prefix="/me", tags=["profile"])


@router.get("", response_model=SessionRead, summary="Current session")
async def me(session: SessionState = Depends(get_session)):
    """Session of the caller: authentication, verification, admin flag, profile."""
    return SessionRead.from_state(session)


@router.patch("/profile", response_model=Profile, summary="Edit contact details")
async def update_profile(body: ProfileUpdate, session: SessionState = Depends(get_current_member)):
    return await profile_service.update_contact_details(session.member_id, body)


@router.put("/notifications", response_model=NotificationSettings, summary="WhatsApp opt-in")
async def update_notifications(
    body: NotificationSettings,
    session: SessionState = Depends(get_current_member),
):
    """Number used for verification updates and community broadcasts."""
    return await profile_service.set_notification_settings(session.member_id, body)


@router.post(
    "/verification",
    response_model=Profile,
    summary="Submit the lineage form for verification",
)
async def submit_verification(
    body: VerificationSubmit,
    session: SessionState = Depends(get_current_member),
):
    """Moves the profile to ``pending`` and clears any previous rejection reason."""
    return await verification.submit_verification(session.member_id, body)
