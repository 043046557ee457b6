"""
samaj/db/repositories/account_repo.py — Accounts of the Identity Store.

Account and profile are created in one transaction (one-to-one).
"""

from __future__ import annotations

from uuid import UUID

import asyncpg

from samaj.database import get_connection
from samaj.exceptions import ConflictError


async def create_account(
    email: str,
    password_hash: str,
    name: str,
    mobile: str,
) -> dict:
    """
    Create an account together with its profile (status ``none``).

    A concurrent signup that loses the race on ``accounts.email`` raises
    ``ConflictError`` rather than a store failure.
    """
    async with get_connection() as conn:
        try:
            async with conn.transaction():
                account = await conn.fetchrow(
                    """
                    INSERT INTO accounts (email, password_hash)
                    VALUES ($1, $2)
                    RETURNING id, email, password_hash, created_at
                    """,
                    email, password_hash,
                )
                await conn.execute(
                    """
                    INSERT INTO profiles (id, name, mobile, email)
                    VALUES ($1, $2, $3, $4)
                    """,
                    account["id"], name, mobile, email,
                )
        except asyncpg.UniqueViolationError as exc:
            raise ConflictError(
                f"Account with email '{email}' already exists",
                details={"field": "email"},
            ) from exc
        return dict(account)


async def get_account_by_email(email: str) -> dict | None:
    """Find an account by email."""
    async with get_connection() as conn:
        row = await conn.fetchrow(
            "SELECT * FROM accounts WHERE email = $1", email
        )
        return dict(row) if row else None


async def get_account_by_id(account_id: UUID) -> dict | None:
    """Find an account by UUID."""
    async with get_connection() as conn:
        row = await conn.fetchrow(
            "SELECT * FROM accounts WHERE id = $1", account_id
        )
        return dict(row) if row else None
