"""
samaj/db/repositories/profile_repo.py — Member profiles.
"""

from __future__ import annotations

from uuid import UUID

from samaj.database import get_connection

# Columns a caller may write through update_profile().
UPDATABLE_COLUMNS = frozenset({
    "name",
    "mobile",
    "email",
    "gotra",
    "father_name",
    "native_village",
    "reference_person",
    "reference_mobile",
    "avatar_url",
    "verification_status",
    "rejection_reason",
})


def _row(row) -> dict:
    data = dict(row)
    status = data.get("verification_status")
    if status is not None:
        data["verification_status"] = str(status)
    return data


async def get_profile(member_id: UUID) -> dict | None:
    """Find a profile by member id."""
    async with get_connection() as conn:
        row = await conn.fetchrow(
            "SELECT * FROM profiles WHERE id = $1", member_id
        )
        return _row(row) if row else None


async def update_profile(member_id: UUID, fields: dict) -> dict | None:
    """Update the given columns of a single profile row; returns the new row."""
    unknown = set(fields) - UPDATABLE_COLUMNS
    if unknown:
        raise ValueError(f"Not updatable: {sorted(unknown)}")
    if not fields:
        return await get_profile(member_id)

    columns = list(fields)
    assignments = ", ".join(f"{col} = ${i}" for i, col in enumerate(columns, start=2))
    values = [
        v.value if hasattr(v, "value") else v
        for v in (fields[c] for c in columns)
    ]
    async with get_connection() as conn:
        row = await conn.fetchrow(
            f"""
            UPDATE profiles SET {assignments}, updated_at = NOW()
            WHERE id = $1
            RETURNING *
            """,
            member_id, *values,
        )
        return _row(row) if row else None


async def list_profiles_by_status(status: str) -> list[dict]:
    """Profiles in the given verification state, newest first."""
    async with get_connection() as conn:
        rows = await conn.fetch(
            """
            SELECT * FROM profiles
            WHERE verification_status = $1
            ORDER BY created_at DESC
            """,
            status,
        )
        return [_row(r) for r in rows]


async def delete_profile(member_id: UUID) -> bool:
    """Remove a profile row (administrative action)."""
    async with get_connection() as conn:
        result = await conn.execute(
            "DELETE FROM profiles WHERE id = $1", member_id
        )
        return result.endswith(" 1")
