import pytest

PASSWORD = "correct-horse-battery"

pytestmark = pytest.mark.asyncio


async def test_login_returns_token_and_user(client, tenant):
    r = await client.post("/api/auth/login", json={"email": "manager@acme.io", "password": PASSWORD})
    assert r.status_code == 200
    body = r.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == "manager"
    assert "password_hash" not in body["user"]

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "manager@acme.io"


async def test_login_rejects_bad_password(client, tenant):
    r = await client.post("/api/auth/login", json={"email": "manager@acme.io", "password": "wrong-password"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid credentials"


async def test_login_unknown_email(client, tenant):
    r = await client.post("/api/auth/login", json={"email": "nobody@acme.io", "password": PASSWORD})
    assert r.status_code == 401


async def test_protected_route_requires_token(client, tenant):
    r = await client.get("/api/work-items")
    assert r.status_code == 401


async def test_garbage_token_rejected(client, tenant):
    r = await client.get("/api/work-items", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


async def test_change_password(client, tenant, auth):
    r = await client.post(
        "/api/auth/change-password",
        json={"current_password": "wrong-one", "new_password": "brand-new-pass"},
        headers=auth("team_member"),
    )
    assert r.status_code == 400

    r = await client.post(
        "/api/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "brand-new-pass"},
        headers=auth("team_member"),
    )
    assert r.status_code == 200

    r = await client.post("/api/auth/login", json={"email": "team_member@acme.io", "password": "brand-new-pass"})
    assert r.status_code == 200


async def test_password_reset_flow(client, tenant):
    from app.core.security import create_password_reset_token

    # unknown addresses get the same answer
    r = await client.post("/api/auth/forgot-password", json={"email": "ghost@acme.io"})
    assert r.status_code == 200

    token = create_password_reset_token(tenant.user("admin").id)
    r = await client.post("/api/auth/reset-password", json={"token": token, "new_password": "reset-pass-123"})
    assert r.status_code == 200

    r = await client.post("/api/auth/login", json={"email": "admin@acme.io", "password": "reset-pass-123"})
    assert r.status_code == 200


async def test_reset_token_cannot_authenticate(client, tenant):
    from app.core.security import create_password_reset_token

    token = create_password_reset_token(tenant.user("admin").id)
    r = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


async def test_suspended_org_blocks_members(client, tenant, auth):
    r = await client.post(f"/api/organizations/{tenant.org.id}/suspend", headers=auth("super_admin"))
    assert r.status_code == 200
    assert r.json()["is_active"] is False

    r = await client.get("/api/work-items", headers=auth("manager"))
    assert r.status_code == 403
