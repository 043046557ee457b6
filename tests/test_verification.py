from uuid import uuid4

import pytest

from samaj import memory_store
from samaj.exceptions import NotFoundError, ValidationError
from samaj.models import Profile, VerificationStatus, VerificationSubmit
from samaj.services import verification
from samaj.services.audit_logger import AuditAction, get_audit_logger
from samaj.services.verification import (
    VerificationEvent,
    allowed_events,
    apply_approval,
    apply_rejection,
    apply_submission,
)

FORM = {
    "name": "Ramesh Sharma",
    "mobile": "+919876543210",
    "gotra": "Bharadwaj",
    "father_name": "Suresh Sharma",
    "native_village": "Nathdwara",
    "reference_person": "Mahesh Joshi",
    "reference_mobile": "9812345678",
}


def _profile(status="none", reason=None) -> Profile:
    return Profile(
        id=uuid4(), name="Ramesh Sharma", mobile="+919876543210",
        verification_status=status, rejection_reason=reason,
    )


# ── Pure transitions ─────────────────────────────────────────────────────


def test_reason_only_allowed_on_rejected_profile():
    with pytest.raises(ValueError):
        _profile(status="verified", reason="Gotra mismatch")
    assert _profile(status="rejected", reason="Gotra mismatch").rejection_reason == "Gotra mismatch"


@pytest.mark.parametrize("status", ["none", "rejected", "verified", "pending"])
def test_submission_moves_to_pending_and_clears_reason(status):
    reason = "Gotra mismatch" if status == "rejected" else None
    updated = apply_submission(_profile(status, reason), VerificationSubmit(**FORM))

    assert updated.verification_status == VerificationStatus.PENDING
    assert updated.rejection_reason is None
    assert updated.gotra == "Bharadwaj"
    assert updated.native_village == "Nathdwara"


def test_approval_only_from_pending():
    approved = apply_approval(_profile("pending"))
    assert approved.verification_status == VerificationStatus.VERIFIED

    already = _profile("verified")
    assert apply_approval(already) is already
    rejected = _profile("rejected", "Gotra mismatch")
    assert apply_approval(rejected).rejection_reason == "Gotra mismatch"


def test_rejection_requires_reason():
    with pytest.raises(ValidationError):
        apply_rejection(_profile("pending"), "   ")


def test_rejection_outside_pending_is_noop():
    rejected = _profile("rejected", "Old reason")
    assert apply_rejection(rejected, "New reason") is rejected


def test_transition_table():
    assert allowed_events(VerificationStatus.PENDING) == [
        VerificationEvent.SUBMIT, VerificationEvent.APPROVE, VerificationEvent.REJECT,
    ]
    assert allowed_events(VerificationStatus.VERIFIED) == [VerificationEvent.SUBMIT]


# ── Operations ───────────────────────────────────────────────────────────


async def test_submit_from_rejected(make_member):
    member = await make_member(status="rejected", reason="Gotra mismatch")

    profile = await verification.submit_verification(member, FORM)

    assert profile.verification_status == VerificationStatus.PENDING
    assert profile.rejection_reason is None
    stored = await memory_store.get_profile(member)
    assert stored["father_name"] == "Suresh Sharma"
    assert len(get_audit_logger().records(AuditAction.VERIFICATION_SUBMIT)) == 1


@pytest.mark.parametrize("missing", ["name", "mobile", "gotra"])
async def test_submit_with_missing_required_field_keeps_state(make_member, missing):
    member = await make_member(status="rejected", reason="Gotra mismatch")
    form = {k: v for k, v in FORM.items() if k != missing}

    with pytest.raises(ValidationError) as exc_info:
        await verification.submit_verification(member, form)

    assert missing in exc_info.value.details["fields"]
    stored = await memory_store.get_profile(member)
    assert stored["verification_status"] == "rejected"
    assert stored["rejection_reason"] == "Gotra mismatch"


async def test_submit_with_blank_gotra_is_rejected(make_member):
    member = await make_member()
    with pytest.raises(ValidationError):
        await verification.submit_verification(member, {**FORM, "gotra": "   "})
    assert (await memory_store.get_profile(member))["verification_status"] == "none"


async def test_submit_unknown_member():
    with pytest.raises(NotFoundError):
        await verification.submit_verification(uuid4(), FORM)


async def test_approve_notifies_member(make_member, dispatcher):
    member = await make_member(status="pending")
    admin = await make_member(name="Admin User", roles=("admin",))

    profile = await verification.approve_verification(member, admin)

    assert profile.verification_status == VerificationStatus.VERIFIED
    assert profile.rejection_reason is None
    assert len(dispatcher.calls) == 1
    assert dispatcher.calls[0]["recipient"] == member
    assert "Ramesh Sharma" in dispatcher.calls[0]["body"]


async def test_approve_already_verified_is_noop(make_member, dispatcher):
    member = await make_member(status="verified")

    profile = await verification.approve_verification(member, uuid4())

    assert profile.verification_status == VerificationStatus.VERIFIED
    assert profile.rejection_reason is None
    assert dispatcher.calls == []


async def test_reject_pending_with_reason(make_member, dispatcher):
    member = await make_member(status="pending")

    profile = await verification.reject_verification(member, uuid4(), "Gotra mismatch")

    assert profile.verification_status == VerificationStatus.REJECTED
    assert profile.rejection_reason == "Gotra mismatch"
    assert len(dispatcher.calls) == 1
    assert "Reason: Gotra mismatch" in dispatcher.calls[0]["body"]


async def test_notification_failure_does_not_block_transition(make_member, dispatcher):
    dispatcher.fail = True
    member = await make_member(status="pending")

    profile = await verification.approve_verification(member, uuid4())

    assert profile.verification_status == VerificationStatus.VERIFIED
    assert len(dispatcher.calls) == 1


async def test_list_pending_and_delete(make_member):
    pending = await make_member(status="pending")
    await make_member(name="Other Member", status="verified")

    assert [p.id for p in await verification.list_pending()] == [pending]

    await verification.delete_profile(pending, uuid4())
    assert await memory_store.get_profile(pending) is None
    with pytest.raises(NotFoundError):
        await verification.delete_profile(pending, uuid4())
