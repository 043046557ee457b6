import asyncio

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from samaj import memory_store
from samaj.dependencies import require_feature
from samaj.models import Feature, SessionState

FORM = {
    "name": "Ramesh Sharma",
    "mobile": "+919876543210",
    "gotra": "Bharadwaj",
    "father_name": "Suresh Sharma",
    "native_village": "Nathdwara",
}


def _access(client, feature, headers=None):
    response = client.get(f"/api/v1/access/{feature}", headers=headers or {})
    assert response.status_code == 200
    return response.json()


def test_signup_login_and_me(client):
    response = client.post("/api/v1/signup", json={
        "email": "ramesh@example.com",
        "password": "Sanskriti1",
        "name": "Ramesh Sharma",
        "mobile": "+919876543210",
    })
    assert response.status_code == 201
    assert response.json()["verification_status"] == "none"

    tokens = client.post("/api/v1/login", json={
        "email": "ramesh@example.com", "password": "Sanskriti1",
    }).json()
    me = client.get("/api/v1/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})

    body = me.json()
    assert body["authenticated"] is True
    assert body["verified"] is False
    assert body["is_admin"] is False
    assert body["profile"]["name"] == "Ramesh Sharma"


def test_login_failure_is_401(client):
    response = client.post("/api/v1/login", json={"email": "x@example.com", "password": "nope"})
    assert response.status_code == 401
    assert response.json()["error"]["details"]["next"] == "login"


def test_anonymous_access(client):
    assert _access(client, "pandit_directory")["decision"] == {"kind": "allow"}
    contact = _access(client, "pandit_contact")
    assert contact["decision"]["kind"] == "hide_or_redirect"
    assert contact["decision"]["target"] == "login"
    assert contact["treatment"] == "redirect"


def test_unknown_feature_is_404(client):
    response = client.get("/api/v1/access/karaoke")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "SAMAJ_UNKNOWN_FEATURE"


def test_invalid_token_is_401(client):
    response = client.get("/api/v1/me", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401
    response = client.get("/api/v1/me", headers={"Authorization": "Token abc"})
    assert response.status_code == 401


def test_verification_flow_end_to_end(client, make_member_sync, auth_header, dispatcher):
    member = make_member_sync()
    admin = make_member_sync(name="Admin User", roles=("admin",))
    member_h, admin_h = auth_header(member), auth_header(admin)

    live = _access(client, "live_stream", member_h)
    assert live["decision"]["kind"] == "blur_with_upsell"
    assert live["treatment"] == "lock_panel"

    submitted = client.post("/api/v1/me/verification", json=FORM, headers=member_h)
    assert submitted.status_code == 200
    assert submitted.json()["verification_status"] == "pending"
    assert _access(client, "event_registration", member_h)["decision"]["cta_target"] == "register"

    pending = client.get("/api/v1/admin/verifications/pending", headers=admin_h).json()
    assert [p["id"] for p in pending] == [str(member)]

    rejected = client.post(
        f"/api/v1/admin/verifications/{member}/reject",
        json={"reason": "Gotra mismatch"},
        headers=admin_h,
    )
    assert rejected.json()["verification_status"] == "rejected"
    assert rejected.json()["rejection_reason"] == "Gotra mismatch"
    assert len(dispatcher.calls) == 1

    client.post("/api/v1/me/verification", json=FORM, headers=member_h)
    approved = client.post(f"/api/v1/admin/verifications/{member}/approve", headers=admin_h)
    assert approved.json()["verification_status"] == "verified"
    assert approved.json()["rejection_reason"] is None
    assert len(dispatcher.calls) == 2

    # the next request sees the new state without any refresh call
    assert _access(client, "live_stream", member_h)["decision"] == {"kind": "allow"}
    assert _access(client, "donations", member_h)["treatment"] == "render"


def test_submit_missing_gotra_keeps_state(client, make_member_sync, auth_header):
    member = make_member_sync(status="rejected", reason="Gotra mismatch")
    form = {k: v for k, v in FORM.items() if k != "gotra"}

    response = client.post("/api/v1/me/verification", json=form, headers=auth_header(member))

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "SAMAJ_VALIDATION_ERROR"
    assert error["details"]["fields"] == ["gotra"]
    profile = asyncio.run(memory_store.get_profile(member))
    assert profile["verification_status"] == "rejected"
    assert profile["rejection_reason"] == "Gotra mismatch"


def test_submit_requires_login(client):
    response = client.post("/api/v1/me/verification", json=FORM)
    assert response.status_code == 401


def test_admin_endpoints_need_admin_role(client, make_member_sync, auth_header):
    verified = make_member_sync(status="verified")
    unverified_admin = make_member_sync(name="Admin User", roles=("admin",))

    denied = client.get("/api/v1/admin/verifications/pending", headers=auth_header(verified))
    assert denied.status_code == 403
    assert denied.json()["error"]["details"]["next"] == "home"
    assert client.get("/api/v1/admin/verifications/pending").status_code == 401

    allowed = client.get("/api/v1/admin/verifications/pending", headers=auth_header(unverified_admin))
    assert allowed.status_code == 200
    assert _access(client, "admin_dashboard", auth_header(unverified_admin))["decision"] == {"kind": "allow"}


def test_reject_needs_reason(client, make_member_sync, auth_header):
    member = make_member_sync(status="pending")
    admin = make_member_sync(name="Admin User", roles=("admin",))

    response = client.post(
        f"/api/v1/admin/verifications/{member}/reject",
        json={"reason": "  "},
        headers=auth_header(admin),
    )
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "SAMAJ_VALIDATION_ERROR"
    assert error["details"]["fields"] == ["reason"]
    assert asyncio.run(memory_store.get_profile(member))["verification_status"] == "pending"


def test_roles_and_profile_removal(client, make_member_sync, auth_header):
    member = make_member_sync(status="verified")
    admin_h = auth_header(make_member_sync(name="Admin User", roles=("admin",)))

    assert client.put(f"/api/v1/admin/roles/{member}/moderator", headers=admin_h).status_code == 204
    assert client.get(f"/api/v1/admin/roles/{member}", headers=admin_h).json() == ["moderator"]
    # moderator grants nothing extra
    assert _access(client, "admin_dashboard", auth_header(member))["decision"]["target"] == "home"

    assert client.delete(f"/api/v1/admin/roles/{member}/moderator", headers=admin_h).status_code == 204
    assert client.delete(f"/api/v1/admin/profiles/{member}", headers=admin_h).status_code == 204
    assert client.delete(f"/api/v1/admin/profiles/{member}", headers=admin_h).status_code == 404

    # account still authenticates, but without a profile nothing verified-only is allowed
    me = client.get("/api/v1/me", headers=auth_header(member)).json()
    assert me["authenticated"] is True and me["verified"] is False


def test_logout_returns_anonymous_session(client, make_member_sync, auth_header):
    member = make_member_sync(status="verified")
    body = client.post("/api/v1/logout", headers=auth_header(member)).json()
    assert body["authenticated"] is False
    assert body["member_id"] is None


def test_contact_details_update(client, make_member_sync, auth_header):
    member = make_member_sync(status="verified")
    response = client.patch(
        "/api/v1/me/profile", json={"email": "new@example.com"}, headers=auth_header(member),
    )
    assert response.status_code == 200
    assert response.json()["email"] == "new@example.com"
    assert response.json()["verification_status"] == "verified"


def test_notification_settings(client, make_member_sync, auth_header):
    member = make_member_sync()
    headers = auth_header(member)

    response = client.put(
        "/api/v1/me/notifications", json={"whatsapp_number": "+919876543210"}, headers=headers,
    )
    assert response.status_code == 200
    assert response.json() == {"whatsapp_number": "+919876543210", "whatsapp_notifications": True}
    assert asyncio.run(memory_store.get_whatsapp_number(member)) == "+919876543210"

    client.put(
        "/api/v1/me/notifications",
        json={"whatsapp_number": "+919876543210", "whatsapp_notifications": False},
        headers=headers,
    )
    assert asyncio.run(memory_store.get_whatsapp_number(member)) is None


def test_notification_settings_need_number_and_login(client, make_member_sync, auth_header):
    response = client.put(
        "/api/v1/me/notifications", json={}, headers=auth_header(make_member_sync()),
    )
    assert response.status_code == 422
    assert response.json()["error"]["details"]["fields"] == ["whatsapp_number"]
    assert client.put("/api/v1/me/notifications", json={}).status_code == 401


@pytest.fixture
def gated_client():
    from samaj.main import create_app

    app = create_app(use_lifespan=False)

    @app.post("/bookings")
    async def book(session: SessionState = Depends(require_feature(Feature.PANDIT_BOOKING))):
        return {"member_id": str(session.member_id)}

    @app.post("/donations")
    async def donate(session: SessionState = Depends(require_feature(Feature.DONATIONS))):
        return {"ok": True}

    with TestClient(app) as c:
        yield c


def test_feature_guard_anonymous_is_sent_to_login(gated_client):
    response = gated_client.post("/bookings")
    assert response.status_code == 401
    assert response.json()["error"]["details"]["next"] == "login"


@pytest.mark.parametrize("path", ["/bookings", "/donations"])
def test_feature_guard_unverified_is_sent_to_register(gated_client, make_member_sync, auth_header, path):
    member = make_member_sync(status="pending")
    response = gated_client.post(path, headers=auth_header(member))
    assert response.status_code == 403
    error = response.json()["error"]
    assert error["code"] == "SAMAJ_AUTHZ_ERROR"
    assert error["details"]["next"] == "register"


def test_feature_guard_lets_verified_members_through(gated_client, make_member_sync, auth_header):
    member = make_member_sync(status="verified")
    response = gated_client.post("/bookings", headers=auth_header(member))
    assert response.status_code == 200
    assert response.json() == {"member_id": str(member)}
