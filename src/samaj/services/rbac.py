"""
samaj/services/rbac.py — Role resolution.

Roles are stored as separate rows ``(member_id, role)``. The only check the
portal consumes is "is this member an admin"; ``moderator`` exists in the
role enum and can be assigned, but nothing consults it.

Role is independent of verification: an unverified admin is still an admin.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends

from samaj.db.repositories import role_repo
from samaj.exceptions import AuthenticationError, AuthorizationError
from samaj.models.enums import AppRole
from samaj.services.audit_logger import AuditAction, get_audit_logger

logger = logging.getLogger(__name__)


async def has_role(member_id: UUID, role: AppRole | str) -> bool:
    """True iff the member holds ``role``. Lookup failures propagate."""
    role_str = role.value if isinstance(role, AppRole) else AppRole(role).value
    return await role_repo.has_role(member_id, role_str)


async def is_admin(member_id: UUID | None) -> bool:
    """
    Admin check used by the session and the admin guard.

    Fail-closed: a failed lookup yields ``False``, never ``True``.
    """
    if member_id is None:
        return False
    try:
        return await has_role(member_id, AppRole.ADMIN)
    except Exception as exc:
        logger.warning("Admin role lookup for %s failed, treating as non-admin: %s", member_id, exc)
        return False


async def get_roles(member_id: UUID) -> list[AppRole]:
    return [AppRole(r) for r in await role_repo.get_roles(member_id)]


async def assign_role(member_id: UUID, role: AppRole, actor_id: UUID) -> None:
    """Grant ``role`` (admin tooling, idempotent)."""
    await role_repo.assign_role(member_id, role.value)
    logger.info("Role %s assigned to %s by %s", role.value, member_id, actor_id)
    await get_audit_logger().log(
        AuditAction.ROLE_ASSIGN, "member", str(member_id),
        user_id=str(actor_id), details={"role": role.value},
    )


async def revoke_role(member_id: UUID, role: AppRole, actor_id: UUID) -> None:
    """Remove ``role`` (admin tooling)."""
    await role_repo.revoke_role(member_id, role.value)
    logger.info("Role %s revoked from %s by %s", role.value, member_id, actor_id)
    await get_audit_logger().log(
        AuditAction.ROLE_REVOKE, "member", str(member_id),
        user_id=str(actor_id), details={"role": role.value},
    )


def require_admin():
    """FastAPI dependency: the current session must hold the admin role."""
    from samaj.dependencies import get_session
    from samaj.models.session import SessionState

    async def _check(session: SessionState = Depends(get_session)) -> SessionState:
        if not session.authenticated:
            raise AuthenticationError()
        if not session.is_admin:
            logger.warning("RBAC: member %s denied admin access", session.member_id)
            raise AuthorizationError("Admin access required", next_action="home")
        return session
    return _check
