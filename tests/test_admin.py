import pytest
from sqlalchemy import update

from app.modules.admin.models import Organization

pytestmark = pytest.mark.asyncio


async def _create_user(client, headers, **overrides):
    payload = {"username": "newbie", "email": "newbie@acme.io", "password": "s3cret-pass", "role": "team_member"}
    payload.update(overrides)
    return await client.post("/api/core/users", json=payload, headers=headers)


async def test_admin_creates_user(client, tenant, auth):
    r = await _create_user(client, auth("admin"))
    assert r.status_code == 201
    body = r.json()
    assert body["org_id"] == str(tenant.org.id)
    assert body["role"] == "team_member"

    r = await client.get("/api/core/users", headers=auth("team_member"))
    assert r.status_code == 200
    assert "newbie" in [u["username"] for u in r.json()]


async def test_manager_cannot_create_user(client, tenant, auth):
    r = await _create_user(client, auth("manager"))
    assert r.status_code == 403


async def test_duplicate_email_and_username_conflict(client, tenant, auth):
    r = await _create_user(client, auth("admin"), email="MANAGER@acme.io")
    assert r.status_code == 409

    r = await _create_user(client, auth("admin"), username="manager", email="other@acme.io")
    assert r.status_code == 409


async def test_only_super_admin_grants_super_admin(client, tenant, auth):
    r = await _create_user(client, auth("admin"), role="super_admin")
    assert r.status_code == 403

    r = await _create_user(client, auth("super_admin"), role="super_admin")
    assert r.status_code == 201


async def test_change_role(client, tenant, auth):
    uid = tenant.user("team_member").id
    r = await client.patch(f"/api/core/users/{uid}/role", json={"role": "manager"}, headers=auth("admin"))
    assert r.status_code == 200
    assert r.json()["role"] == "manager"


async def test_cannot_delete_self(client, tenant, auth):
    uid = tenant.user("admin").id
    r = await client.delete(f"/api/core/users/{uid}", headers=auth("admin"))
    assert r.status_code == 400


async def test_delete_user_hides_it(client, tenant, auth):
    uid = tenant.user("team_member").id
    r = await client.delete(f"/api/core/users/{uid}", headers=auth("admin"))
    assert r.status_code == 204

    r = await client.get(f"/api/core/users/{uid}", headers=auth("admin"))
    assert r.status_code == 404


async def test_users_are_tenant_scoped(client, tenant, other_tenant, auth, other_auth):
    uid = tenant.user("manager").id
    r = await client.get(f"/api/core/users/{uid}", headers=other_auth)
    assert r.status_code == 404

    r = await client.get("/api/core/users", headers=other_auth)
    assert [u["email"] for u in r.json()] == ["admin@globex.io"]


async def test_team_lifecycle(client, tenant, auth):
    r = await client.post("/api/core/teams", json={"name": "Field Ops"}, headers=auth("team_member"))
    assert r.status_code == 403

    r = await client.post("/api/core/teams", json={"name": "Field Ops"}, headers=auth("manager"))
    assert r.status_code == 201
    team_id = r.json()["id"]
    assert r.json()["default_cadence"] == "weekly"

    r = await client.post("/api/core/teams", json={"name": "Field Ops"}, headers=auth("manager"))
    assert r.status_code == 409

    member = {"user_id": str(tenant.user("team_member").id), "role": "Leader"}
    r = await client.post(f"/api/core/teams/{team_id}/members", json=member, headers=auth("manager"))
    assert r.status_code == 201
    r = await client.post(f"/api/core/teams/{team_id}/members", json=member, headers=auth("manager"))
    assert r.status_code == 409

    r = await client.get(f"/api/core/teams/{team_id}/members", headers=auth("team_member"))
    assert len(r.json()) == 1
    assert r.json()[0]["role"] == "Leader"

    r = await client.delete(f"/api/core/teams/{team_id}", headers=auth("manager"))
    assert r.status_code == 204

    # name is free again once the team is gone
    r = await client.post("/api/core/teams", json={"name": "Field Ops"}, headers=auth("manager"))
    assert r.status_code == 201


async def test_organization_admin(client, tenant, auth):
    r = await client.post("/api/organizations", json={"name": "Initech", "domain": "initech.io"}, headers=auth("admin"))
    assert r.status_code == 403

    r = await client.post("/api/organizations", json={"name": "Initech", "domain": "Initech.io"}, headers=auth("super_admin"))
    assert r.status_code == 201
    assert r.json()["domain"] == "initech.io"

    r = await client.post("/api/organizations", json={"name": "Initech 2", "domain": "initech.io"}, headers=auth("super_admin"))
    assert r.status_code == 409

    r = await client.get("/api/organizations", headers=auth("admin"))
    assert [o["name"] for o in r.json()] == ["Acme Networks"]

    r = await client.patch(f"/api/organizations/{tenant.org.id}", json={"time_zone": "Europe/London"}, headers=auth("admin"))
    assert r.status_code == 200
    assert r.json()["time_zone"] == "Europe/London"


async def test_super_admin_cannot_delete_own_org(client, tenant, auth):
    r = await client.delete(f"/api/organizations/{tenant.org.id}", headers=auth("super_admin"))
    assert r.status_code == 400


async def test_user_limit_blocks_extra_active_users(client, tenant, auth, db_session):
    # the seeded org already has four active users
    await db_session.execute(update(Organization).where(Organization.id == tenant.org.id).values(max_users=5))
    await db_session.commit()

    r = await _create_user(client, auth("admin"))
    assert r.status_code == 201

    r = await _create_user(client, auth("admin"), username="extra", email="extra@acme.io")
    assert r.status_code == 409
    assert r.json()["detail"] == "Organization user limit reached (5)"

    # inactive accounts do not count against the limit
    r = await _create_user(client, auth("admin"), username="dormant", email="dormant@acme.io", is_active=False)
    assert r.status_code == 201
