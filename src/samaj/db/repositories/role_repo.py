"""
samaj/db/repositories/role_repo.py — Role rows (one row per member and role).
"""

from __future__ import annotations

from uuid import UUID

from samaj.database import get_connection


async def has_role(member_id: UUID, role: str) -> bool:
    """True iff the row ``(member_id, role)`` exists."""
    async with get_connection() as conn:
        found = await conn.fetchval(
            "SELECT 1 FROM user_roles WHERE user_id = $1 AND role = $2",
            member_id, role,
        )
        return found is not None


async def get_roles(member_id: UUID) -> list[str]:
    """All roles of a member."""
    async with get_connection() as conn:
        rows = await conn.fetch(
            "SELECT role FROM user_roles WHERE user_id = $1 ORDER BY role",
            member_id,
        )
        return [str(r["role"]) for r in rows]


async def assign_role(member_id: UUID, role: str) -> None:
    """Grant a role (idempotent)."""
    async with get_connection() as conn:
        await conn.execute(
            """
            INSERT INTO user_roles (user_id, role)
            VALUES ($1, $2)
            ON CONFLICT (user_id, role) DO NOTHING
            """,
            member_id, role,
        )


async def revoke_role(member_id: UUID, role: str) -> None:
    """Remove a role row."""
    async with get_connection() as conn:
        await conn.execute(
            "DELETE FROM user_roles WHERE user_id = $1 AND role = $2",
            member_id, role,
        )
