import asyncio
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from samaj import memory_store
from samaj.db.repositories import account_repo
from samaj.services import notifications
from samaj.services.audit_logger import get_audit_logger

_sql_create_account = account_repo.create_account
memory_store.activate_samaj_memory_store()


class RecordingDispatcher(notifications.NotificationDispatcher):
    """Dispatcher that records every notify() call instead of sending."""

    def __init__(self, fail: bool = False):
        super().__init__(None)
        self.calls = []
        self.fail = fail

    async def notify(self, recipient, title, body):
        self.calls.append({"recipient": recipient, "title": title, "body": body})
        if self.fail:
            raise RuntimeError("gateway down")
        return {"sent": 1, "failed": 0, "total": 1}


@pytest.fixture(autouse=True)
def clean_state():
    memory_store.reset()
    get_audit_logger().clear()
    dispatcher = RecordingDispatcher()
    notifications.set_notification_dispatcher(dispatcher)
    yield dispatcher
    notifications.set_notification_dispatcher(None)


@pytest.fixture
def dispatcher(clean_state):
    return clean_state


async def _make_member(
    name="Ramesh Sharma",
    email=None,
    mobile="+919876543210",
    status="none",
    reason=None,
    roles=(),
) -> UUID:
    email = email or f"{name.split()[0].lower()}-{len(memory_store._accounts)}@example.com"
    account = await memory_store.create_account(email, "x", name, mobile)
    member_id = account["id"]
    await memory_store.update_profile(
        member_id, {"verification_status": status, "rejection_reason": reason},
    )
    for role in roles:
        await memory_store.assign_role(member_id, role)
    return member_id


@pytest.fixture
def make_member():
    return _make_member


@pytest.fixture
def make_member_sync():
    def factory(**kwargs) -> UUID:
        return asyncio.run(_make_member(**kwargs))
    return factory


@pytest.fixture
def client():
    from samaj.main import create_app

    with TestClient(create_app(use_lifespan=False)) as c:
        yield c


@pytest.fixture
def auth_header():
    from samaj.services.auth_service import create_access_token

    def header(member_id: UUID) -> dict:
        return {"Authorization": f"Bearer {create_access_token(member_id)}"}
    return header


@pytest.fixture
def sql_create_account():
    """The asyncpg implementation of create_account, before the memory store replaced it."""
    return _sql_create_account
