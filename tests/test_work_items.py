import pytest

pytestmark = pytest.mark.asyncio


async def _create(client, headers, **overrides):
    payload = {"title": "Install fibre at 12 High St", "description": "Customer ready from Monday"}
    payload.update(overrides)
    r = await client.post("/api/work-items", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


async def test_create_defaults_owner_and_status(client, tenant, auth):
    item = await _create(client, auth("team_member"))
    assert item["status"] == "Planning"
    assert item["owner_id"] == str(tenant.user("team_member").id)

    r = await client.get(f"/api/work-items/{item['id']}/activity", headers=auth("team_member"))
    assert [a["action_type"] for a in r.json()] == ["creation"]


async def test_invalid_status_rejected(client, tenant, auth):
    r = await client.post("/api/work-items", json={"title": "x", "status": "Done"}, headers=auth("manager"))
    assert r.status_code == 422


async def test_filters(client, tenant, auth):
    h = auth("manager")
    await _create(client, h, title="Router swap", status="Ready")
    await _create(client, h, title="Billing query", status="Stuck", work_item_type="billing")
    await _create(client, h, title="Old job", status="Completed")

    r = await client.get("/api/work-items", params={"status": "Ready,Stuck"}, headers=h)
    assert sorted(i["title"] for i in r.json()) == ["Billing query", "Router swap"]

    r = await client.get("/api/work-items", params={"work_item_type": "billing"}, headers=h)
    assert [i["title"] for i in r.json()] == ["Billing query"]

    r = await client.get("/api/work-items", params={"q": "router"}, headers=h)
    assert [i["title"] for i in r.json()] == ["Router swap"]


async def test_status_and_assignee_changes_are_logged(client, tenant, auth):
    h = auth("manager")
    item = await _create(client, h)
    assignee = str(tenant.user("team_member").id)

    r = await client.patch(f"/api/work-items/{item['id']}", json={"status": "In Progress", "assigned_to": assignee}, headers=h)
    assert r.status_code == 200
    assert r.json()["status"] == "In Progress"

    r = await client.get(f"/api/work-items/{item['id']}/activity", headers=h)
    by_type = {a["action_type"]: a for a in r.json()}
    assert by_type["status_change"]["meta"] == {"from": "Planning", "to": "In Progress"}
    assert by_type["assignment"]["meta"]["to"] == assignee


async def test_bulk_update(client, tenant, auth):
    h = auth("manager")
    a = await _create(client, h, title="A")
    b = await _create(client, h, title="B")
    r = await client.patch("/api/work-items/bulk", json={"ids": [a["id"], b["id"]], "set": {"status": "Ready"}}, headers=h)
    assert r.status_code == 200
    assert r.json() == {"updated": 2}

    r = await client.get("/api/work-items", params={"status": "Ready"}, headers=h)
    assert len(r.json()) == 2


async def test_comments(client, tenant, auth):
    h = auth("team_member")
    item = await _create(client, h)
    r = await client.post(f"/api/work-items/{item['id']}/comments", json={"comment": "Called customer"}, headers=h)
    assert r.status_code == 201
    assert r.json()["description"] == "Called customer"

    r = await client.get(f"/api/work-items/{item['id']}/comments", headers=h)
    assert [c["description"] for c in r.json()] == ["Called customer"]


async def test_delete_requires_manager(client, tenant, auth):
    item = await _create(client, auth("team_member"))
    r = await client.delete(f"/api/work-items/{item['id']}", headers=auth("team_member"))
    assert r.status_code == 403

    r = await client.delete(f"/api/work-items/{item['id']}", headers=auth("manager"))
    assert r.status_code == 204
    r = await client.get(f"/api/work-items/{item['id']}", headers=auth("manager"))
    assert r.status_code == 404


async def test_work_items_isolated_between_orgs(client, tenant, other_tenant, auth, other_auth):
    item = await _create(client, auth("manager"))
    r = await client.get(f"/api/work-items/{item['id']}", headers=other_auth)
    assert r.status_code == 404
    r = await client.patch(f"/api/work-items/{item['id']}", json={"title": "hijack"}, headers=other_auth)
    assert r.status_code == 404


async def test_activity_log_endpoint(client, tenant, auth):
    h = auth("manager")
    item = await _create(client, h)
    r = await client.get("/api/activity-logs", params={"entity_type": "work_item", "entity_id": item["id"]}, headers=h)
    assert r.status_code == 200
    assert len(r.json()) == 1
