from datetime import datetime
from types import SimpleNamespace

import pytest

from app.modules.strategy.progress import key_result_completion, objective_completion, next_occurrence


# ---- progress maths ----

def _kr(type="Numeric Target", target=100, current=0, status="On Track"):
    return SimpleNamespace(type=type, target_value=target, current_value=current, status=status)


def test_key_result_completion_is_clamped():
    assert key_result_completion(_kr(current=50)) == 50.0
    assert key_result_completion(_kr(current=250)) == 100.0
    assert key_result_completion(_kr(current=-10)) == 0.0


def test_milestone_counts_only_when_completed():
    assert key_result_completion(_kr(type="Milestone", current=99)) == 0.0
    assert key_result_completion(_kr(type="Milestone", status="Completed")) == 100.0


def test_zero_target_falls_back_to_status():
    assert key_result_completion(_kr(target=0, current=5)) == 0.0
    assert key_result_completion(_kr(target=None, status="Completed")) == 100.0


def test_objective_completion_averages():
    assert objective_completion([]) == 0.0
    assert objective_completion([_kr(current=100), _kr(current=0), _kr(current=50)]) == 50.0


def test_next_occurrence():
    due = datetime(2024, 3, 1, 9, 0)
    assert next_occurrence(due, "weekly") == datetime(2024, 3, 8, 9, 0)
    assert next_occurrence(due, None) == due
    assert next_occurrence(None, "daily") is None


def test_next_occurrence_uses_calendar_months():
    assert next_occurrence(datetime(2024, 1, 31, 9, 0), "monthly") == datetime(2024, 2, 29, 9, 0)
    assert next_occurrence(datetime(2024, 1, 15), "monthly") == datetime(2024, 2, 15)
    assert next_occurrence(datetime(2024, 11, 30), "quarterly") == datetime(2025, 2, 28)
    assert next_occurrence(datetime(2024, 12, 31), "daily") == datetime(2025, 1, 1)


# ---- API ----

async def _objective(client, headers, **overrides):
    payload = {"title": "Grow subscribers", "status": "Active"}
    payload.update(overrides)
    r = await client.post("/api/strategy/objectives", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


async def _key_result(client, headers, objective_id, **overrides):
    payload = {"objective_id": objective_id, "title": "Reach 1000 subscribers", "target_value": 1000, "current_value": 0}
    payload.update(overrides)
    r = await client.post("/api/strategy/key-results", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


@pytest.mark.asyncio
async def test_mission_vision_upsert(client, tenant, auth):
    r = await client.get("/api/strategy/mission-vision", headers=auth("team_member"))
    assert r.status_code == 404

    r = await client.put("/api/strategy/mission-vision", json={"mission": "Connect everyone"}, headers=auth("team_member"))
    assert r.status_code == 403

    r = await client.put("/api/strategy/mission-vision", json={"mission": "Connect everyone"}, headers=auth("manager"))
    assert r.status_code == 200
    r = await client.put("/api/strategy/mission-vision", json={"vision": "Fast rural internet"}, headers=auth("manager"))
    body = r.json()
    assert body["mission"] == "Connect everyone"
    assert body["vision"] == "Fast rural internet"


@pytest.mark.asyncio
async def test_progress_updates_derived_objective(client, tenant, auth):
    h = auth("team_member")
    obj = await _objective(client, h)
    assert obj["kpi_type"] == "Derived from Key Results"
    kr1 = await _key_result(client, h, obj["id"])
    await _key_result(client, h, obj["id"], title="Launch in 2 towns", type="Milestone")

    r = await client.post(f"/api/strategy/key-results/{kr1['id']}/progress", json={"current_value": 500, "notes": "Q1 push"}, headers=h)
    assert r.status_code == 200
    assert r.json()["current_value"] == 500

    r = await client.get(f"/api/strategy/objectives/{obj['id']}", headers=h)
    assert r.json()["current_value"] == 25.0

    r = await client.get(f"/api/strategy/key-results/{kr1['id']}/activity", headers=h)
    kpi = [a for a in r.json() if a["action_type"] == "kpi_update"]
    assert kpi[0]["meta"]["previous_value"] == 0
    assert kpi[0]["meta"]["current_value"] == 500


@pytest.mark.asyncio
async def test_manual_objective_is_not_recomputed(client, tenant, auth):
    h = auth("manager")
    obj = await _objective(client, h, kpi_type="Manual Input", current_value=42)
    kr = await _key_result(client, h, obj["id"])
    await client.post(f"/api/strategy/key-results/{kr['id']}/progress", json={"current_value": 1000}, headers=h)

    r = await client.get(f"/api/strategy/objectives/{obj['id']}", headers=h)
    assert r.json()["current_value"] == 42


@pytest.mark.asyncio
async def test_key_result_for_unknown_objective(client, tenant, auth):
    r = await client.post(
        "/api/strategy/key-results",
        json={"objective_id": "00000000-0000-0000-0000-00000000abcd", "title": "Orphan"},
        headers=auth("manager"),
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_delete_permissions(client, tenant, auth):
    obj = await _objective(client, auth("team_member"))
    kr = await _key_result(client, auth("team_member"), obj["id"])

    r = await client.delete(f"/api/strategy/key-results/{kr['id']}", headers=auth("team_member"))
    assert r.status_code == 403
    r = await client.delete(f"/api/strategy/objectives/{obj['id']}", headers=auth("manager"))
    assert r.status_code == 403

    r = await client.delete(f"/api/strategy/objectives/{obj['id']}", headers=auth("admin"))
    assert r.status_code == 204
    # key results go with their objective
    r = await client.get(f"/api/strategy/key-results/{kr['id']}", headers=auth("admin"))
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_reorder_objectives(client, tenant, auth):
    h = auth("manager")
    a = await _objective(client, h, title="A")
    b = await _objective(client, h, title="B")
    assert (a["display_order"], b["display_order"]) == (0, 1)

    r = await client.put("/api/strategy/objectives/reorder", json={"ids": [b["id"], a["id"]]}, headers=h)
    assert r.status_code == 200
    assert [o["title"] for o in r.json()] == ["B", "A"]

    r = await client.put("/api/strategy/objectives/reorder", json={"ids": [a["id"], a["id"]]}, headers=h)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_recurring_task_completion(client, tenant, auth):
    h = auth("team_member")
    obj = await _objective(client, h)
    kr = await _key_result(client, h, obj["id"])

    r = await client.post(f"/api/strategy/key-results/{kr['id']}/tasks", json={"title": "Weekly review", "is_recurring": True}, headers=h)
    assert r.status_code == 400

    r = await client.post(
        f"/api/strategy/key-results/{kr['id']}/tasks",
        json={"title": "Weekly review", "is_recurring": True, "frequency": "weekly", "next_due_date": "2024-03-01T09:00:00Z"},
        headers=h,
    )
    assert r.status_code == 201
    task = r.json()

    r = await client.patch(f"/api/strategy/tasks/{task['id']}", json={"status": "Completed"}, headers=h)
    assert r.status_code == 200
    body = r.json()
    assert body["completed_count"] == 1
    assert body["next_due_date"].startswith("2024-03-08")


@pytest.mark.asyncio
async def test_task_update_keeps_recurring_rule(client, tenant, auth):
    h = auth("team_member")
    obj = await _objective(client, h)
    kr = await _key_result(client, h, obj["id"])
    r = await client.post(f"/api/strategy/key-results/{kr['id']}/tasks", json={"title": "Audit backups"}, headers=h)
    task = r.json()
    url = f"/api/strategy/tasks/{task['id']}"

    r = await client.patch(url, json={"is_recurring": True}, headers=h)
    assert r.status_code == 400

    r = await client.patch(url, json={"is_recurring": True, "frequency": "monthly"}, headers=h)
    assert r.status_code == 200
    assert r.json()["frequency"] == "monthly"

    r = await client.patch(url, json={"frequency": None}, headers=h)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_generate_work_item_from_task(client, tenant, auth):
    h = auth("manager")
    obj = await _objective(client, h)
    kr = await _key_result(client, h, obj["id"])
    r = await client.post(f"/api/strategy/key-results/{kr['id']}/tasks", json={"title": "Call churned customers"}, headers=h)
    task = r.json()

    r = await client.post(f"/api/strategy/tasks/{task['id']}/generate-work-item", headers=h)
    assert r.status_code == 201
    item = r.json()
    assert item["title"] == "Call churned customers"
    assert item["key_result_task_id"] == task["id"]

    r = await client.get("/api/work-items", params={"key_result_task_id": task["id"]}, headers=h)
    assert len(r.json()) == 1


@pytest.mark.asyncio
async def test_key_result_comments(client, tenant, auth):
    h = auth("team_member")
    obj = await _objective(client, h)
    kr = await _key_result(client, h, obj["id"])
    r = await client.post(f"/api/strategy/key-results/{kr['id']}/comments", json={"comment": "On track"}, headers=h)
    assert r.status_code == 201
    r = await client.get(f"/api/strategy/key-results/{kr['id']}/comments", headers=h)
    assert [c["comment"] for c in r.json()] == ["On track"]
