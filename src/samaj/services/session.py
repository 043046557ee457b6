"""
samaj/services/session.py — Session lifecycle.

``SessionProvider`` owns the current ``SessionState`` of one logical
session and is passed explicitly to whoever evaluates gates.

Guarantees:
    • establish / refresh resolve the profile and the admin flag first and
      then publish both in a single reference swap, so a reader never sees
      a new profile paired with an old admin flag (or the reverse);
    • teardown clears profile + admin flag before the token, so nothing
      evaluated while logout is in progress can be allowed a member feature;
    • a failed profile fetch leaves the session authenticated but
      unverified; a failed role lookup yields ``is_admin = False``.

Lifecycle changes are serialised by an ``asyncio.Lock``; reading
``current`` never blocks.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable
from uuid import UUID

from samaj.db.repositories import profile_repo
from samaj.models.profile import Profile
from samaj.models.session import ANONYMOUS, SessionState
from samaj.services import rbac

logger = logging.getLogger(__name__)

Listener = Callable[[SessionState], Awaitable[None] | None]


async def load_profile(member_id: UUID) -> Profile | None:
    """Profile of ``member_id``, or None when missing or the fetch failed."""
    try:
        row = await profile_repo.get_profile(member_id)
    except Exception as exc:
        logger.warning("Profile fetch for %s failed, session stays unverified: %s", member_id, exc)
        return None
    return Profile(**row) if row else None


async def resolve_session(member_id: UUID, access_token: str) -> SessionState:
    """Build a complete snapshot for an authenticated member."""
    profile, admin = await asyncio.gather(load_profile(member_id), rbac.is_admin(member_id))
    return SessionState(
        member_id=member_id,
        access_token=access_token,
        profile=profile,
        is_admin=admin,
        established_at=datetime.now(timezone.utc),
    )


class SessionProvider:
    """Holder of the current session snapshot of one client."""

    def __init__(self, state: SessionState = ANONYMOUS) -> None:
        self._state = state
        self._lock = asyncio.Lock()
        self._listeners: list[Listener] = []

    @property
    def current(self) -> SessionState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` after every change; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    async def _publish(self, state: SessionState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                result = listener(state)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                logger.error("Session listener failed: %s", exc)

    async def establish(self, member_id: UUID, access_token: str) -> SessionState:
        """Login / app start: resolve profile + admin flag, then publish."""
        async with self._lock:
            state = await resolve_session(member_id, access_token)
            await self._publish(state)
            logger.info(
                "Session established for %s (status=%s, admin=%s)",
                member_id, state.verification_status.value, state.is_admin,
            )
            return state

    async def refresh(self, access_token: str | None = None) -> SessionState:
        """Token refresh or explicit retry: re-derive everything for the same member."""
        async with self._lock:
            old = self._state
            if not old.authenticated:
                return old
            state = await resolve_session(old.member_id, access_token or old.access_token)
            await self._publish(state)
            return state

    async def teardown(self) -> None:
        """Logout: drop profile and admin flag, then the identity token."""
        async with self._lock:
            old = self._state
            if old.member_id is None and old.access_token is None:
                return
            await self._publish(old.model_copy(update={"profile": None, "is_admin": False}))
            await self._publish(ANONYMOUS)
            logger.info("Session closed for %s", old.member_id)
