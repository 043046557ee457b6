"""
samaj/api/auth.py — Account endpoints (signup, login, token refresh, logout).
"""

from fastapi import APIRouter, Body, Depends, status

from samaj.dependencies import get_session_provider
from samaj.models.session import LoginRequest, SessionRead, SignupRequest, TokenPair
from samaj.services import auth_service
from samaj.services.session import SessionProvider

router = APIRouter(tags=["auth"])


@router.post(
    "/signup",
    response_model=SessionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account and its member profile",
)
async def signup(body: SignupRequest):
    """Registers a member; the profile starts in verification state ``none``."""
    member_id = await auth_service.register_member(body)
    provider = SessionProvider()
    state = await provider.establish(member_id, auth_service.create_access_token(member_id))
    return SessionRead.from_state(state)


@router.post(
    "/login",
    response_model=TokenPair,
    summary="email + password → JWT pair",
)
async def login(body: LoginRequest):
    _, tokens = await auth_service.authenticate(body.email, body.password)
    return tokens


@router.post(
    "/token/refresh",
    response_model=TokenPair,
    summary="Exchange a refresh token for a new pair",
)
async def refresh_token(refresh_token: str = Body(..., embed=True)):
    _, tokens = await auth_service.refresh_tokens(refresh_token)
    return tokens


@router.post(
    "/logout",
    response_model=SessionRead,
    summary="Close the current session",
)
async def logout(provider: SessionProvider = Depends(get_session_provider)):
    """Tokens are stateless; the answer shows the anonymous session the client must switch to."""
    await provider.teardown()
    return SessionRead.from_state(provider.current)
