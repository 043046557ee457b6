"""
samaj/api/admin.py — Admin back-office: verification queue, profiles, roles.

Every endpoint requires the admin role; the caller's own verification
state does not matter.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from samaj.models.enums import AppRole
from samaj.models.profile import Profile, RejectRequest
from samaj.models.session import SessionState
from samaj.services import rbac, verification
from samaj.services.rbac import require_admin

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/verifications/pending",
    response_model=list[Profile],
    summary="Profiles awaiting verification",
)
async def pending_verifications(admin: SessionState = Depends(require_admin())):
    return await verification.list_pending()


@router.post(
    "/verifications/{member_id}/approve",
    response_model=Profile,
    summary="Approve a pending profile",
)
async def approve(member_id: UUID, admin: SessionState = Depends(require_admin())):
    return await verification.approve_verification(member_id, admin.member_id)


@router.post(
    "/verifications/{member_id}/reject",
    response_model=Profile,
    summary="Reject a pending profile with a reason",
)
async def reject(
    member_id: UUID,
    body: RejectRequest,
    admin: SessionState = Depends(require_admin()),
):
    """The reason is stored on the profile and sent to the member."""
    return await verification.reject_verification(member_id, admin.member_id, body.reason)


@router.delete(
    "/profiles/{member_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a member profile",
)
async def delete_profile(member_id: UUID, admin: SessionState = Depends(require_admin())):
    await verification.delete_profile(member_id, admin.member_id)


@router.get(
    "/roles/{member_id}",
    response_model=list[AppRole],
    summary="Roles of a member",
)
async def roles(member_id: UUID, admin: SessionState = Depends(require_admin())):
    return await rbac.get_roles(member_id)


@router.put(
    "/roles/{member_id}/{role}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Grant a role",
)
async def grant_role(member_id: UUID, role: AppRole, admin: SessionState = Depends(require_admin())):
    await rbac.assign_role(member_id, role, admin.member_id)


@router.delete(
    "/roles/{member_id}/{role}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke a role",
)
async def revoke_role(member_id: UUID, role: AppRole, admin: SessionState = Depends(require_admin())):
    await rbac.revoke_role(member_id, role, admin.member_id)
