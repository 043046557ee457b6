from contextlib import asynccontextmanager
from datetime import timedelta
from uuid import uuid4

import asyncpg
import pytest

from samaj import database, memory_store
from samaj.exceptions import AuthenticationError, ConflictError, ValidationError
from samaj.models import SignupRequest
from samaj.services import auth_service
from samaj.services.audit_logger import AuditAction, get_audit_logger


def _signup(**overrides) -> SignupRequest:
    data = {
        "email": "Ramesh@Example.com",
        "password": "Sanskriti1",
        "name": "Ramesh Sharma",
        "mobile": "+919876543210",
    }
    data.update(overrides)
    return SignupRequest(**data)


@pytest.mark.parametrize("password", ["sanskriti1", "SANSKRITI1", "Sanskriti", "Ab1"])
def test_password_policy(password):
    with pytest.raises(ValidationError):
        auth_service.validate_password(password)


def test_password_hash_roundtrip():
    hashed = auth_service.hash_password("Sanskriti1")
    assert auth_service.verify_password("Sanskriti1", hashed)
    assert not auth_service.verify_password("wrong", hashed)
    assert not auth_service.verify_password("Sanskriti1", "not-a-hash")


async def test_register_creates_profile_with_status_none():
    member_id = await auth_service.register_member(_signup())

    profile = await memory_store.get_profile(member_id)
    assert profile["verification_status"] == "none"
    assert profile["rejection_reason"] is None
    assert profile["email"] == "ramesh@example.com"
    assert len(get_audit_logger().records(AuditAction.MEMBER_REGISTER)) == 1


async def test_register_duplicate_email():
    await auth_service.register_member(_signup())
    with pytest.raises(ConflictError):
        await auth_service.register_member(_signup(email="ramesh@example.com"))


async def test_authenticate_and_refresh():
    member_id = await auth_service.register_member(_signup())

    logged_in, tokens = await auth_service.authenticate("ramesh@example.com", "Sanskriti1")
    assert logged_in == member_id
    assert auth_service.decode_token(tokens.access_token) == member_id

    refreshed, new_tokens = await auth_service.refresh_tokens(tokens.refresh_token)
    assert refreshed == member_id
    assert auth_service.decode_token(new_tokens.access_token) == member_id


async def test_authenticate_wrong_password():
    await auth_service.register_member(_signup())
    with pytest.raises(AuthenticationError):
        await auth_service.authenticate("ramesh@example.com", "Wrong1234")


def test_token_type_and_expiry_are_checked():
    member_id = uuid4()
    with pytest.raises(AuthenticationError):
        auth_service.decode_token(auth_service.create_refresh_token(member_id))
    expired = auth_service.create_access_token(member_id, expires_delta=timedelta(seconds=-5))
    with pytest.raises(AuthenticationError):
        auth_service.decode_token(expired)
    with pytest.raises(AuthenticationError):
        auth_service.decode_token("garbage")


async def test_refresh_for_unknown_account():
    with pytest.raises(AuthenticationError):
        await auth_service.refresh_tokens(auth_service.create_refresh_token(uuid4()))


class _DuplicateEmailConnection:
    @asynccontextmanager
    async def transaction(self):
        yield

    async def fetchrow(self, query, *args):
        raise asyncpg.UniqueViolationError('duplicate key value violates unique constraint "accounts_email_key"')


class _Pool:
    @asynccontextmanager
    async def acquire(self):
        yield _DuplicateEmailConnection()


async def test_concurrent_duplicate_signup_is_conflict(sql_create_account, monkeypatch):
    async def get_pool():
        return _Pool()

    monkeypatch.setattr(database, "get_pool", get_pool)

    with pytest.raises(ConflictError) as exc_info:
        await sql_create_account("ramesh@example.com", "hash", "Ramesh Sharma", "+919876543210")
    assert exc_info.value.details == {"field": "email"}
