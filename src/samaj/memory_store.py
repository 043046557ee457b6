"""
═══════════════════════════════════════════════════════════════════════════════
Samaj — In-memory store (stand-in for the database in local development)
═══════════════════════════════════════════════════════════════════════════════

In-memory implementations of the repositories plus
``activate_samaj_memory_store()`` which monkey-patches them in.
Used when PostgreSQL is unreachable at startup, and by the test suite.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID, uuid4

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Data of the membership domain
# ═══════════════════════════════════════════════════════════════════════════════
_accounts: dict[UUID, dict] = {}
_profiles: dict[UUID, dict] = {}
_roles: list[dict] = []
_subscriptions: dict[UUID, dict] = {}

_now = lambda: datetime.now(timezone.utc)  # noqa: E731


def reset() -> None:
    """Drops every record (tests)."""
    _accounts.clear()
    _profiles.clear()
    _roles.clear()
    _subscriptions.clear()


# ═══════════════════════════════════════════════════════════════════════════════
# account_repo in-memory
# ═══════════════════════════════════════════════════════════════════════════════

async def create_account(email: str, password_hash: str, name: str, mobile: str) -> dict:
    """Creates an account and its profile in memory."""
    aid = uuid4()
    now = _now()
    account = {"id": aid, "email": email, "password_hash": password_hash, "created_at": now}
    _accounts[aid] = account
    _profiles[aid] = {
        "id": aid, "name": name, "mobile": mobile, "email": email,
        "gotra": None, "father_name": None, "native_village": None,
        "reference_person": None, "reference_mobile": None, "avatar_url": None,
        "verification_status": "none", "rejection_reason": None,
        "created_at": now, "updated_at": now,
    }
    logger.info("Samaj memory store: created account %s <%s>", name, email)
    return dict(account)


async def get_account_by_email(email: str) -> dict | None:
    for a in _accounts.values():
        if a["email"] == email:
            return dict(a)
    return None


async def get_account_by_id(account_id: UUID) -> dict | None:
    a = _accounts.get(account_id)
    return dict(a) if a else None


# ═══════════════════════════════════════════════════════════════════════════════
# profile_repo in-memory
# ═══════════════════════════════════════════════════════════════════════════════

async def get_profile(member_id: UUID) -> dict | None:
    p = _profiles.get(member_id)
    return dict(p) if p else None


async def update_profile(member_id: UUID, fields: dict) -> dict | None:
    from samaj.db.repositories.profile_repo import UPDATABLE_COLUMNS

    unknown = set(fields) - UPDATABLE_COLUMNS
    if unknown:
        raise ValueError(f"Not updatable: {sorted(unknown)}")
    p = _profiles.get(member_id)
    if p is None:
        return None
    for key, value in fields.items():
        p[key] = value.value if hasattr(value, "value") else value
    p["updated_at"] = _now()
    return dict(p)


async def list_profiles_by_status(status: str) -> list[dict]:
    rows = [dict(p) for p in _profiles.values() if p["verification_status"] == status]
    rows.sort(key=lambda p: p["created_at"], reverse=True)
    return rows


async def delete_profile(member_id: UUID) -> bool:
    return _profiles.pop(member_id, None) is not None


# ═══════════════════════════════════════════════════════════════════════════════
# role_repo in-memory
# ═══════════════════════════════════════════════════════════════════════════════

async def has_role(member_id: UUID, role: str) -> bool:
    return any(r["user_id"] == member_id and r["role"] == role for r in _roles)


async def get_roles(member_id: UUID) -> list[str]:
    return sorted(r["role"] for r in _roles if r["user_id"] == member_id)


async def assign_role(member_id: UUID, role: str) -> None:
    if not await has_role(member_id, role):
        _roles.append({"id": uuid4(), "user_id": member_id, "role": role})


async def revoke_role(member_id: UUID, role: str) -> None:
    _roles[:] = [
        r for r in _roles if not (r["user_id"] == member_id and r["role"] == role)
    ]


# ═══════════════════════════════════════════════════════════════════════════════
# subscription_repo in-memory
# ═══════════════════════════════════════════════════════════════════════════════

async def get_whatsapp_number(member_id: UUID) -> str | None:
    s = _subscriptions.get(member_id)
    if s and s["whatsapp_notifications"]:
        return s["whatsapp_number"]
    return None


async def list_whatsapp_numbers() -> list[str]:
    return [
        s["whatsapp_number"] for s in _subscriptions.values()
        if s["whatsapp_notifications"] and s["whatsapp_number"]
    ]


async def upsert_subscription(
    member_id: UUID, whatsapp_number: str | None, whatsapp_notifications: bool = True,
) -> None:
    _subscriptions[member_id] = {
        "user_id": member_id,
        "whatsapp_number": whatsapp_number,
        "whatsapp_notifications": whatsapp_notifications,
    }


# ═══════════════════════════════════════════════════════════════════════════════
# Activation (monkey-patching)
# ═══════════════════════════════════════════════════════════════════════════════

def activate_samaj_memory_store() -> None:
    """
    Replaces the functions of samaj.db.repositories.* with in-memory ones.

    Called from samaj.main → lifespan() when the database is unreachable.
    """
    from samaj.db.repositories import account_repo, profile_repo, role_repo, subscription_repo

    # ── account_repo ──
    account_repo.create_account = create_account
    account_repo.get_account_by_email = get_account_by_email
    account_repo.get_account_by_id = get_account_by_id

    # ── profile_repo ──
    profile_repo.get_profile = get_profile
    profile_repo.update_profile = update_profile
    profile_repo.list_profiles_by_status = list_profiles_by_status
    profile_repo.delete_profile = delete_profile

    # ── role_repo ──
    role_repo.has_role = has_role
    role_repo.get_roles = get_roles
    role_repo.assign_role = assign_role
    role_repo.revoke_role = revoke_role

    # ── subscription_repo ──
    subscription_repo.get_whatsapp_number = get_whatsapp_number
    subscription_repo.list_whatsapp_numbers = list_whatsapp_numbers
    subscription_repo.upsert_subscription = upsert_subscription

    # ── audit log: buffer only ──
    from samaj.services.audit_logger import get_audit_logger
    get_audit_logger().persist = False

    logger.warning(
        "Samaj memory store ACTIVATED — all data is in-memory (lost on restart)."
    )
