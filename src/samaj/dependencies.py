"""
═══════════════════════════════════════════════════════════════════════════════
Samaj — FastAPI dependencies (Dependency Injection)
═══════════════════════════════════════════════════════════════════════════════

Every request gets its own ``SessionProvider``. The session is derived
from the bearer token on each request, so a verification or role change
is visible on the very next call without any manual refresh.
"""

from __future__ import annotations

from fastapi import Depends, Header

from samaj.exceptions import AuthenticationError, AuthorizationError
from samaj.models.decision import BlurWithUpsell, HideOrRedirect
from samaj.models.enums import Feature, Target
from samaj.models.session import SessionState
from samaj.services import access_gate
from samaj.services.auth_service import decode_token
from samaj.services.session import SessionProvider


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    if not authorization.startswith("Bearer "):
        raise AuthenticationError("Authorization header must start with 'Bearer'")
    return authorization[7:]


async def get_session_provider(
    authorization: str | None = Header(None),
) -> SessionProvider:
    """
    Build the session of the caller.

    Steps:
        1. No ``Authorization`` header → anonymous session.
        2. Malformed header or invalid/expired token → 401.
        3. Resolve profile + admin flag and publish them together.
    """
    provider = SessionProvider()
    token = _bearer_token(authorization)
    if token is None:
        return provider
    member_id = decode_token(token)
    await provider.establish(member_id, token)
    return provider


async def get_session(
    provider: SessionProvider = Depends(get_session_provider),
) -> SessionState:
    """Current session snapshot (may be anonymous)."""
    return provider.current


async def get_current_member(
    session: SessionState = Depends(get_session),
) -> SessionState:
    """Authenticated session, else 401 with a ``login`` next action."""
    if not session.authenticated:
        raise AuthenticationError()
    return session


def require_feature(feature: Feature):
    """
    FastAPI dependency: the access gate must allow ``feature``.

    For endpoints that perform a gated member action rather than render it::

        @router.post("/bookings", dependencies=[Depends(require_feature(Feature.PANDIT_BOOKING))])

    A denial that asks for login → 401; any other denial → 403 with the
    gate's message and target as ``details.next``.
    """

    async def _check(session: SessionState = Depends(get_session)) -> SessionState:
        decision = access_gate.evaluate(feature, session)
        if decision.allowed:
            return session
        if isinstance(decision, HideOrRedirect) and decision.target is Target.LOGIN:
            raise AuthenticationError(decision.message or "Authentication required")
        target = decision.cta_target if isinstance(decision, BlurWithUpsell) else decision.target
        raise AuthorizationError(decision.message, next_action=target.value)
    return _check
