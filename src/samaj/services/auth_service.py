"""
samaj/services/auth_service.py — Identity Store: accounts, passwords, tokens.

Registration creates the account and its profile together (status
``none``). Tokens are HS256 JWTs carrying only the member id; verification
state and roles are always re-read by the session, never trusted from the
token.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from uuid import UUID

import bcrypt
from jose import JWTError, jwt

from samaj.config import get_settings
from samaj.db.repositories import account_repo
from samaj.exceptions import AuthenticationError, ConflictError, ValidationError
from samaj.models.session import SignupRequest, TokenPair
from samaj.services.audit_logger import AuditAction, get_audit_logger

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# PASSWORDS
# ═══════════════════════════════════════════════════════════════════════════

_PASSWORD_RULES = (
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"[0-9]"), "Password must contain at least one number"),
)


def validate_password(password: str) -> None:
    """Raise ValidationError unless the password meets the policy."""
    if len(password) < 8:
        raise ValidationError("Password must be at least 8 characters", details={"fields": ["password"]})
    for pattern, message in _PASSWORD_RULES:
        if not pattern.search(password):
            raise ValidationError(message, details={"fields": ["password"]})


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Compare a plain password with the stored hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# ═══════════════════════════════════════════════════════════════════════════
# JWT
# ═══════════════════════════════════════════════════════════════════════════


def _encode(member_id: UUID, token_type: str, lifetime: timedelta) -> str:
    settings = get_settings()
    payload = {
        "sub": str(member_id),
        "type": token_type,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(member_id: UUID, expires_delta: timedelta | None = None) -> str:
    settings = get_settings()
    return _encode(
        member_id, "access",
        expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes),
    )


def create_refresh_token(member_id: UUID) -> str:
    settings = get_settings()
    return _encode(member_id, "refresh", timedelta(days=settings.jwt_refresh_token_expire_days))


def decode_token(token: str, expected_type: str = "access") -> UUID:
    """Validate signature, expiry and type; return the member id."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise AuthenticationError(f"Invalid token: {exc}") from exc
    if payload.get("type") != expected_type:
        raise AuthenticationError(f"Token is not an {expected_type} token")
    try:
        return UUID(payload["sub"])
    except (KeyError, ValueError) as exc:
        raise AuthenticationError("Token payload missing 'sub'") from exc


def _issue(member_id: UUID) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(member_id),
        refresh_token=create_refresh_token(member_id),
    )


# ═══════════════════════════════════════════════════════════════════════════
# OPERATIONS
# ═══════════════════════════════════════════════════════════════════════════


async def register_member(data: SignupRequest) -> UUID:
    """Create account + profile; returns the new member id."""
    validate_password(data.password)
    email = data.email.lower()
    if await account_repo.get_account_by_email(email):
        raise ConflictError(
            f"Account with email '{email}' already exists",
            details={"field": "email"},
        )

    account = await account_repo.create_account(
        email=email,
        password_hash=hash_password(data.password),
        name=data.name,
        mobile=data.mobile,
    )
    member_id = account["id"]
    logger.info("Member registered: %s <%s>", member_id, email)

    await get_audit_logger().log(
        AuditAction.MEMBER_REGISTER, "member", str(member_id), user_id=str(member_id),
    )
    from samaj.events import emit_member_registered
    await emit_member_registered(str(member_id), email)
    return member_id


async def authenticate(email: str, password: str) -> tuple[UUID, TokenPair]:
    """email + password → member id and a token pair."""
    account = await account_repo.get_account_by_email(email.strip().lower())
    if not account or not verify_password(password, account["password_hash"]):
        raise AuthenticationError("Invalid email or password")
    return account["id"], _issue(account["id"])


async def refresh_tokens(refresh_token: str) -> tuple[UUID, TokenPair]:
    """New token pair for a valid refresh token."""
    member_id = decode_token(refresh_token, expected_type="refresh")
    if not await account_repo.get_account_by_id(member_id):
        raise AuthenticationError("Account not found")
    return member_id, _issue(member_id)
