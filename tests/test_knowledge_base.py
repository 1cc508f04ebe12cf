import pytest

from app.modules.knowledge_base.service import reading_time_minutes


def test_reading_time_ignores_markup():
    assert reading_time_minutes(None) == 1
    assert reading_time_minutes("<p>" + "word " * 200 + "</p>") == 1
    assert reading_time_minutes("<p>" + "word " * 201 + "</p>") == 2


async def _doc(client, headers, **overrides):
    payload = {"title": "Router reset guide", "content": "<p>Hold the reset button for ten seconds</p>",
               "categories": ["Network"], "status": "published"}
    payload.update(overrides)
    r = await client.post("/api/knowledge-base/documents", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


@pytest.mark.asyncio
async def test_create_snapshots_initial_version(client, tenant, auth):
    h = auth("team_member")
    doc = await _doc(client, h)
    assert doc["author_id"] == str(tenant.user("team_member").id)
    assert doc["published_at"] is not None
    assert doc["estimated_reading_time"] == 1

    r = await client.get(f"/api/knowledge-base/documents/{doc['id']}/versions", headers=h)
    versions = r.json()
    assert [v["version_number"] for v in versions] == [1]
    assert versions[0]["change_description"] == "Initial version"


@pytest.mark.asyncio
async def test_content_update_adds_version_and_restore(client, tenant, auth):
    h = auth("manager")
    doc = await _doc(client, h)
    r = await client.put(f"/api/knowledge-base/documents/{doc['id']}",
                         json={"content": "<p>New steps</p>", "change_description": "Rewrite"}, headers=h)
    assert r.status_code == 200
    assert r.json()["content"] == "<p>New steps</p>"

    # metadata-only edits do not create versions
    await client.put(f"/api/knowledge-base/documents/{doc['id']}", json={"tags": ["router"]}, headers=h)

    r = await client.get(f"/api/knowledge-base/documents/{doc['id']}/versions", headers=h)
    assert [v["version_number"] for v in r.json()] == [2, 1]
    assert r.json()[0]["change_description"] == "Rewrite"

    r = await client.post(f"/api/knowledge-base/documents/{doc['id']}/versions/1/restore", headers=h)
    assert r.status_code == 200
    assert r.json()["content"] == doc["content"]

    r = await client.get(f"/api/knowledge-base/documents/{doc['id']}/versions", headers=h)
    latest = r.json()[0]
    assert latest["version_number"] == 3
    assert latest["change_description"] == "Restored from version 1"

    r = await client.post(f"/api/knowledge-base/documents/{doc['id']}/versions/99/restore", headers=h)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_manual_version(client, tenant, auth):
    h = auth("team_member")
    doc = await _doc(client, h)
    r = await client.post(f"/api/knowledge-base/documents/{doc['id']}/versions", json={"change_description": "Checkpoint"}, headers=h)
    assert r.status_code == 201
    assert r.json()["version_number"] == 2


@pytest.mark.asyncio
async def test_archive_sets_timestamp(client, tenant, auth):
    h = auth("manager")
    doc = await _doc(client, h)
    r = await client.put(f"/api/knowledge-base/documents/{doc['id']}", json={"status": "archived"}, headers=h)
    assert r.json()["archived_at"] is not None

    r = await client.put(f"/api/knowledge-base/documents/{doc['id']}", json={"status": "draft"}, headers=h)
    assert r.json()["archived_at"] is None


@pytest.mark.asyncio
async def test_search(client, tenant, auth):
    h = auth("team_member")
    await _doc(client, h)
    await _doc(client, h, title="Billing FAQ", content="Invoices go out monthly", categories=["Billing"])
    await _doc(client, h, title="Old router notes", content="Legacy", status="archived")

    r = await client.get("/api/knowledge-base/search", params={"q": "  "}, headers=h)
    assert r.status_code == 400

    r = await client.get("/api/knowledge-base/search", params={"q": "router"}, headers=h)
    assert [d["title"] for d in r.json()] == ["Router reset guide"]

    r = await client.get("/api/knowledge-base/documents", params={"category": "Billing"}, headers=h)
    assert [d["title"] for d in r.json()] == ["Billing FAQ"]

    r = await client.get("/api/knowledge-base/documents", params={"status": "archived"}, headers=h)
    assert [d["title"] for d in r.json()] == ["Old router notes"]


@pytest.mark.asyncio
async def test_delete_document_requires_manager(client, tenant, auth):
    doc = await _doc(client, auth("team_member"))
    r = await client.delete(f"/api/knowledge-base/documents/{doc['id']}", headers=auth("team_member"))
    assert r.status_code == 403
    r = await client.delete(f"/api/knowledge-base/documents/{doc['id']}", headers=auth("manager"))
    assert r.status_code == 204
    r = await client.get(f"/api/knowledge-base/documents/{doc['id']}", headers=auth("manager"))
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_categories(client, tenant, auth):
    h = auth("manager")
    r = await client.post("/api/knowledge-base/categories", json={"name": "Network"}, headers=auth("team_member"))
    assert r.status_code == 403

    r = await client.post("/api/knowledge-base/categories", json={"name": "Network"}, headers=h)
    assert r.status_code == 201
    cat = r.json()

    r = await client.post("/api/knowledge-base/categories", json={"name": "Network"}, headers=h)
    assert r.status_code == 409

    r = await client.post("/api/knowledge-base/categories",
                          json={"name": "Fibre", "parent_id": "00000000-0000-0000-0000-000000000042"}, headers=h)
    assert r.status_code == 400

    r = await client.put(f"/api/knowledge-base/categories/{cat['id']}", json={"parent_id": cat["id"]}, headers=h)
    assert r.status_code == 400

    r = await client.delete(f"/api/knowledge-base/categories/{cat['id']}", headers=h)
    assert r.status_code == 204
    r = await client.post("/api/knowledge-base/categories", json={"name": "Network"}, headers=h)
    assert r.status_code == 201


@pytest.mark.asyncio
async def test_assignments(client, tenant, auth):
    doc = await _doc(client, auth("manager"))
    url = f"/api/knowledge-base/documents/{doc['id']}/assignments"

    r = await client.post(url, json={"priority": "high"}, headers=auth("manager"))
    assert r.status_code == 400

    # any role may hand out reading
    r = await client.post(url, json={"user_id": str(tenant.user("team_member").id)}, headers=auth("team_member"))
    assert r.status_code == 201
    assignment = r.json()
    assert assignment["status"] == "assigned"

    r = await client.get("/api/knowledge-base/assignments", headers=auth("team_member"))
    assert [a["id"] for a in r.json()] == [assignment["id"]]
    r = await client.get("/api/knowledge-base/assignments", headers=auth("manager"))
    assert r.json() == []

    r = await client.patch(f"{url}/{assignment['id']}", json={"status": "completed"}, headers=auth("team_member"))
    assert r.status_code == 200
    assert r.json()["completed_at"] is not None

    r = await client.delete(f"{url}/{assignment['id']}", headers=auth("team_member"))
    assert r.status_code == 204
    r = await client.get(url, headers=auth("manager"))
    assert r.json() == []


@pytest.mark.asyncio
async def test_team_assignment_reaches_members(client, tenant, auth):
    r = await client.post("/api/core/teams", json={"name": "Support"}, headers=auth("manager"))
    team_id = r.json()["id"]
    await client.post(f"/api/core/teams/{team_id}/members", json={"user_id": str(tenant.user("team_member").id)}, headers=auth("manager"))

    doc = await _doc(client, auth("manager"))
    r = await client.post(f"/api/knowledge-base/documents/{doc['id']}/assignments", json={"team_id": team_id}, headers=auth("manager"))
    assert r.status_code == 201

    r = await client.get("/api/knowledge-base/assignments", headers=auth("team_member"))
    assert len(r.json()) == 1


@pytest.mark.asyncio
async def test_category_parent_must_belong_to_org(client, tenant, auth, other_auth):
    r = await client.post("/api/knowledge-base/categories", json={"name": "Globex internal"}, headers=other_auth)
    foreign = r.json()
    r = await client.post("/api/knowledge-base/categories", json={"name": "Network"}, headers=auth("manager"))
    cat = r.json()

    r = await client.put(f"/api/knowledge-base/categories/{cat['id']}", json={"parent_id": foreign["id"]},
                         headers=auth("manager"))
    assert r.status_code == 400
    assert r.json()["detail"] == "Parent category not found"


@pytest.mark.asyncio
async def test_category_reparent_rejects_cycles(client, tenant, auth):
    h = auth("manager")
    root = (await client.post("/api/knowledge-base/categories", json={"name": "Root"}, headers=h)).json()
    child = (await client.post("/api/knowledge-base/categories", json={"name": "Child", "parent_id": root["id"]}, headers=h)).json()
    leaf = (await client.post("/api/knowledge-base/categories", json={"name": "Leaf", "parent_id": child["id"]}, headers=h)).json()

    r = await client.put(f"/api/knowledge-base/categories/{root['id']}", json={"parent_id": leaf["id"]}, headers=h)
    assert r.status_code == 400
    assert "cycle" in r.json()["detail"]

    # moving a leaf under the root is fine
    r = await client.put(f"/api/knowledge-base/categories/{leaf['id']}", json={"parent_id": root["id"]}, headers=h)
    assert r.status_code == 200
    assert r.json()["parent_id"] == root["id"]
