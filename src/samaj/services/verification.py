"""
samaj/services/verification.py — Member verification state machine.

States ``none → pending → verified | rejected``; ``verified`` and
``rejected`` are re-enterable through a new submission.

    | From              | Event   | To       | Actor  |
    |-------------------|---------|----------|--------|
    | any               | submit  | pending  | member |
    | pending           | approve | verified | admin  |
    | pending           | reject  | rejected | admin  |

Approve/reject outside ``pending`` leave the profile untouched and send no
notification. ``rejection_reason`` is set only on ``rejected`` and cleared
by every other transition.

The ``apply_*`` functions are pure; the async operations around them load,
persist, notify, audit and publish events.
"""

from __future__ import annotations

import logging
from enum import Enum
from uuid import UUID

import pydantic

from samaj.db.repositories import profile_repo
from samaj.exceptions import NotFoundError, ValidationError
from samaj.models.enums import VerificationStatus
from samaj.models.profile import Profile, VerificationSubmit
from samaj.services.audit_logger import AuditAction, get_audit_logger
from samaj.services.notifications import (
    approval_message,
    get_notification_dispatcher,
    rejection_message,
)

logger = logging.getLogger(__name__)


class VerificationEvent(str, Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"


_ANY = tuple(VerificationStatus)

TRANSITIONS: dict[tuple[VerificationStatus, VerificationEvent], VerificationStatus] = {
    **{(s, VerificationEvent.SUBMIT): VerificationStatus.PENDING for s in _ANY},
    (VerificationStatus.PENDING, VerificationEvent.APPROVE): VerificationStatus.VERIFIED,
    (VerificationStatus.PENDING, VerificationEvent.REJECT): VerificationStatus.REJECTED,
}


def allowed_events(status: VerificationStatus) -> list[VerificationEvent]:
    """Events that move a profile out of ``status``."""
    return [event for (src, event) in TRANSITIONS if src == status]


# ═══════════════════════════════════════════════════════════════════════════
# Pure transitions
# ═══════════════════════════════════════════════════════════════════════════


def validate_submission(data: VerificationSubmit | dict) -> VerificationSubmit:
    """Coerce a raw form into ``VerificationSubmit`` or raise the domain ValidationError."""
    if isinstance(data, VerificationSubmit):
        return data
    try:
        return VerificationSubmit.model_validate(data)
    except pydantic.ValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
        first = exc.errors()[0]
        raise ValidationError(
            f"{'.'.join(str(p) for p in first['loc']) or 'form'}: {first['msg']}",
            details={"fields": fields},
        ) from exc


def apply_submission(profile: Profile, data: VerificationSubmit) -> Profile:
    """Member submits the lineage form: any state → pending, reason cleared."""
    target = TRANSITIONS[(profile.verification_status, VerificationEvent.SUBMIT)]
    return profile.model_copy(update={
        **data.model_dump(),
        "verification_status": target,
        "rejection_reason": None,
    })


def apply_approval(profile: Profile) -> Profile:
    """Admin approves: pending → verified, reason cleared. No-op elsewhere."""
    target = TRANSITIONS.get((profile.verification_status, VerificationEvent.APPROVE))
    if target is None:
        return profile
    return profile.model_copy(update={"verification_status": target, "rejection_reason": None})


def apply_rejection(profile: Profile, reason: str) -> Profile:
    """Admin rejects with a reason: pending → rejected. No-op elsewhere."""
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A rejection reason is required", details={"fields": ["reason"]})
    target = TRANSITIONS.get((profile.verification_status, VerificationEvent.REJECT))
    if target is None:
        return profile
    return profile.model_copy(update={"verification_status": target, "rejection_reason": reason})


# ═══════════════════════════════════════════════════════════════════════════
# Persistence helpers
# ═══════════════════════════════════════════════════════════════════════════


async def _load(member_id: UUID) -> Profile:
    row = await profile_repo.get_profile(member_id)
    if not row:
        raise NotFoundError("Profile", str(member_id))
    return Profile(**row)


async def _store(before: Profile, after: Profile) -> Profile:
    old = before.model_dump()
    changes = {
        key: value for key, value in after.model_dump().items()
        if key in profile_repo.UPDATABLE_COLUMNS and old.get(key) != value
    }
    row = await profile_repo.update_profile(after.id, changes)
    if not row:
        raise NotFoundError("Profile", str(after.id))
    return Profile(**row)


async def _notify(member_id: UUID, title: str, body: str) -> None:
    try:
        await get_notification_dispatcher().notify(member_id, title, body)
    except Exception as exc:
        logger.error("Notification for %s failed: %s", member_id, exc)


async def _emit(member_id: UUID, status: VerificationStatus, actor_id: UUID, reason: str | None = None) -> None:
    from samaj.events import emit_verification_changed

    await emit_verification_changed(str(member_id), status.value, str(actor_id), reason)


# ═══════════════════════════════════════════════════════════════════════════
# Operations
# ═══════════════════════════════════════════════════════════════════════════


async def submit_verification(member_id: UUID, data: VerificationSubmit | dict) -> Profile:
    """Member sends the lineage form. Invalid input leaves the profile untouched."""
    form = validate_submission(data)
    profile = await _load(member_id)
    saved = await _store(profile, apply_submission(profile, form))

    logger.info(
        "Verification submitted by %s (%s → pending)",
        member_id, profile.verification_status.value,
    )
    await get_audit_logger().log(
        AuditAction.VERIFICATION_SUBMIT, "profile", str(member_id),
        user_id=str(member_id),
        details={"from": profile.verification_status.value, "gotra": form.gotra},
    )
    await _emit(member_id, saved.verification_status, member_id)
    return saved


async def approve_verification(member_id: UUID, admin_id: UUID) -> Profile:
    """Admin approves a pending profile and the member is notified."""
    profile = await _load(member_id)
    updated = apply_approval(profile)
    if updated is profile:
        logger.info(
            "Approve ignored for %s: status is %s", member_id, profile.verification_status.value,
        )
        return profile

    saved = await _store(profile, updated)
    logger.info("Verification approved: %s by admin %s", member_id, admin_id)
    await _notify(member_id, *approval_message(saved.name))
    await get_audit_logger().log(
        AuditAction.VERIFICATION_APPROVE, "profile", str(member_id), user_id=str(admin_id),
    )
    await _emit(member_id, saved.verification_status, admin_id)
    return saved


async def reject_verification(member_id: UUID, admin_id: UUID, reason: str) -> Profile:
    """Admin rejects a pending profile; the member is notified with the reason."""
    profile = await _load(member_id)
    updated = apply_rejection(profile, reason)
    if updated is profile:
        logger.info(
            "Reject ignored for %s: status is %s", member_id, profile.verification_status.value,
        )
        return profile

    saved = await _store(profile, updated)
    logger.info("Verification rejected: %s by admin %s", member_id, admin_id)
    await _notify(member_id, *rejection_message(saved.name, saved.rejection_reason))
    await get_audit_logger().log(
        AuditAction.VERIFICATION_REJECT, "profile", str(member_id),
        user_id=str(admin_id), details={"reason": saved.rejection_reason},
    )
    await _emit(member_id, saved.verification_status, admin_id, saved.rejection_reason)
    return saved


async def list_pending() -> list[Profile]:
    """Profiles awaiting review, newest first."""
    rows = await profile_repo.list_profiles_by_status(VerificationStatus.PENDING.value)
    return [Profile(**r) for r in rows]


async def delete_profile(member_id: UUID, admin_id: UUID) -> None:
    """Administrative removal of a profile row (not a lifecycle transition)."""
    if not await profile_repo.delete_profile(member_id):
        raise NotFoundError("Profile", str(member_id))
    logger.warning("Profile %s deleted by admin %s", member_id, admin_id)
    await get_audit_logger().log(
        AuditAction.PROFILE_DELETE, "profile", str(member_id), user_id=str(admin_id),
    )
    from samaj.events import emit_profile_deleted
    await emit_profile_deleted(str(member_id), str(admin_id))
