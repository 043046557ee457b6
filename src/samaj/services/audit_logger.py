"""
samaj/services/audit_logger.py — Audit log of the membership domain.

Audited actions:
    • member.register
    • verification.submit, verification.approve, verification.reject
    • profile.delete, role.assign, role.revoke

Writes to ``audit_log`` in PostgreSQL; falls back to an in-memory buffer
when the write fails or when the memory store is active.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class AuditAction(str, Enum):
    """Audited actions of the membership domain."""

    MEMBER_REGISTER = "member.register"

    VERIFICATION_SUBMIT = "verification.submit"
    VERIFICATION_APPROVE = "verification.approve"
    VERIFICATION_REJECT = "verification.reject"

    PROFILE_DELETE = "profile.delete"
    ROLE_ASSIGN = "role.assign"
    ROLE_REVOKE = "role.revoke"


class AuditLogger:
    """
    Audit logger of the membership service.

    Supports:
    - PostgreSQL (audit_log)
    - In-memory buffer (fallback, and the only sink when ``persist`` is off)
    - NATS publication of audit events
    """

    def __init__(self, max_buffer_size: int = 10000, persist: bool = True) -> None:
        self._buffer: list[dict[str, Any]] = []
        self._max_buffer = max_buffer_size
        self.persist = persist

    async def log(
        self,
        action: AuditAction | str,
        entity_type: str,
        entity_id: str,
        user_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Record an audit event. Never raises."""
        action_str = action.value if isinstance(action, AuditAction) else action
        record = {
            "action": action_str,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "user_id": user_id,
            "details": details or {},
            "created_at": datetime.now(timezone.utc).isoformat(),
        }

        if self.persist:
            try:
                await self._write_to_db(record)
            except Exception as e:
                logger.warning("Audit DB write failed, buffering: %s", e)
                self._write_to_buffer(record)
        else:
            self._write_to_buffer(record)

        from samaj.events import publish
        await publish(f"samaj.audit.{action_str}", record)

    async def _write_to_db(self, record: dict[str, Any]) -> None:
        from samaj.database import get_connection

        async with get_connection() as conn:
            await conn.execute(
                """
                INSERT INTO audit_log (action, entity_type, entity_id, user_id, details)
                VALUES ($1, $2, $3, $4, $5::jsonb)
                """,
                record["action"],
                record["entity_type"],
                record["entity_id"],
                record["user_id"],
                json.dumps(record["details"], default=str),
            )

    def _write_to_buffer(self, record: dict[str, Any]) -> None:
        if len(self._buffer) >= self._max_buffer:
            self._buffer.pop(0)
        self._buffer.append(record)

    async def flush_buffer(self) -> int:
        """Try to write buffered records to the database."""
        if not self._buffer or not self.persist:
            return 0
        flushed = 0
        remaining: list[dict[str, Any]] = []
        for record in self._buffer:
            try:
                await self._write_to_db(record)
                flushed += 1
            except Exception:
                remaining.append(record)
        self._buffer = remaining
        if flushed:
            logger.info("Flushed %d audit records from buffer", flushed)
        return flushed

    def records(self, action: AuditAction | str | None = None) -> list[dict[str, Any]]:
        """Buffered records, optionally filtered by action."""
        if action is None:
            return list(self._buffer)
        action_str = action.value if isinstance(action, AuditAction) else action
        return [r for r in self._buffer if r["action"] == action_str]

    def clear(self) -> None:
        self._buffer.clear()

    @property
    def buffer_size(self) -> int:
        return len(self._buffer)


# ═══════════════════════════════════════════════════════════════════════════════
# Singleton
# ═══════════════════════════════════════════════════════════════════════════════

_audit_logger: AuditLogger | None = None


def get_audit_logger() -> AuditLogger:
    """Return the single AuditLogger instance."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger
