from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import update

from app.modules.admin.models import Organization
from app.modules.bookings import service as booking_service
from app.modules.bookings.models import BookingToken
from app.modules.bookings.service import matches_trigger
from app.modules.bookings.slots import calculate_available_slots, parse_duration

MONDAY = date(2030, 1, 7)
BEFORE = datetime(2030, 1, 1, tzinfo=timezone.utc)


# ---- slot maths ----

def test_parse_duration():
    assert parse_duration("2h 30m") == 150
    assert parse_duration("45m") == 45
    assert parse_duration("3h") == 180
    assert parse_duration("") == 0


def _slots(duration="1h", travel=0, tasks=(), start=MONDAY, end=MONDAY):
    return calculate_available_slots(start, end, list(tasks), duration, travel, now=BEFORE, work_start=9, work_end=17)


def test_slots_fit_inside_working_day():
    slots = _slots()
    assert len(slots) == 15
    assert slots[0] == {"datetime": "2030-01-07T09:00:00+00:00", "display_time": "9:00 AM", "display_date": "Mon, Jan 07"}
    assert slots[-1]["datetime"] == "2030-01-07T16:00:00+00:00"


def test_travel_time_counts_both_ways():
    assert len(_slots(duration="2h 30m")) == 12
    slots = _slots(duration="2h 30m", travel=30)
    assert len(slots) == 10
    assert slots[-1]["datetime"] == "2030-01-07T13:30:00+00:00"


def test_weekends_have_no_slots():
    assert _slots(start=date(2030, 1, 5), end=date(2030, 1, 6)) == []


def test_busy_periods_block_overlapping_slots():
    busy = [{"scheduled_from": "2030-01-07 10:00:00", "scheduled_to": "2030-01-07 11:00:00"}]
    starts = [s["datetime"][11:16] for s in _slots(tasks=busy)]
    assert "09:00" in starts
    assert "09:30" not in starts
    assert "10:30" not in starts
    assert "11:00" in starts
    assert len(starts) == 12


def test_busy_task_without_end_lasts_an_hour():
    busy = [{"scheduled_from": "2030-01-07T14:00:00+00:00"}]
    starts = [s["datetime"][11:16] for s in _slots(tasks=busy)]
    assert "13:30" not in starts
    assert "14:30" not in starts
    assert "15:00" in starts


def test_past_slots_are_skipped():
    now = datetime(2030, 1, 7, 12, 0, tzinfo=timezone.utc)
    slots = calculate_available_slots(MONDAY, MONDAY, [], "1h", now=now, work_start=9, work_end=17)
    assert slots[0]["datetime"] == "2030-01-07T12:30:00+00:00"


# ---- trigger matching ----

def test_trigger_matching():
    assert matches_trigger(None, {"ticketType": "Fault"})
    assert matches_trigger({"ticketTypes": ["Installation"]}, {"ticketType": "Installation"})
    assert not matches_trigger({"ticketTypes": ["Installation"]}, {"ticketType": "Fault"})
    assert not matches_trigger({"ticketTypes": ["Installation"]}, {})
    assert matches_trigger({"ticketLabels": ["fibre", "urgent"]}, {"ticketLabels": ["urgent"]})
    assert not matches_trigger({"ticketLabels": ["fibre"]}, {"ticketLabels": ["copper"]})


# ---- API ----

class FakeSplynx:
    def __init__(self):
        self.created = []
        self.queried = []

    async def get_scheduling_tasks(self, **kwargs):
        self.queried.append(kwargs)
        return []

    async def create_task(self, **kwargs):
        self.created.append(kwargs)
        return {"id": 777}


@pytest.fixture
def splynx(monkeypatch):
    fake = FakeSplynx()

    async def _client_for(session, org_id):
        return fake

    monkeypatch.setattr(booking_service, "splynx_client_for", _client_for)
    return fake


CUSTOMER = {"ticketType": "Installation", "customerId": "1234", "customerName": "Ada Lovelace", "address": "12 High St"}


async def _task_type(client, headers, **overrides):
    payload = {"name": "Fibre install", "task_category": "installation", "default_duration": "2h",
               "splynx_project_id": 3, "splynx_workflow_status_id": 9,
               "trigger_conditions": {"ticketTypes": ["Installation"]},
               "confirmation_message": "See you soon"}
    payload.update(overrides)
    r = await client.post("/api/bookable-task-types", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


async def _work_item(client, headers, metadata):
    r = await client.post("/api/work-items", json={"title": "New connection", "workflow_metadata": metadata}, headers=headers)
    return r.json()


async def _booking(client, headers, metadata=CUSTOMER):
    task_type = await _task_type(client, headers)
    item = await _work_item(client, headers, metadata)
    r = await client.post(f"/api/work-items/{item['id']}/create-booking",
                          json={"bookable_task_type_id": task_type["id"]}, headers=headers)
    return task_type, item, r


@pytest.mark.asyncio
async def test_task_type_permissions(client, tenant, auth):
    r = await client.post("/api/bookable-task-types", json={"name": "x"}, headers=auth("team_member"))
    assert r.status_code == 403
    t = await _task_type(client, auth("manager"))
    r = await client.patch(f"/api/bookable-task-types/{t['id']}", json={"is_active": False}, headers=auth("manager"))
    assert r.json()["is_active"] is False
    r = await client.delete(f"/api/bookable-task-types/{t['id']}", headers=auth("manager"))
    assert r.status_code == 204
    r = await client.get("/api/bookable-task-types", headers=auth("manager"))
    assert r.json() == []


@pytest.mark.asyncio
async def test_available_bookings_follow_triggers(client, tenant, auth):
    h = auth("manager")
    await _task_type(client, h)
    await _task_type(client, h, name="Fault visit", trigger_conditions={"ticketTypes": ["Fault"]})
    await _task_type(client, h, name="Inactive", trigger_conditions=None, is_active=False)
    item = await _work_item(client, h, CUSTOMER)

    r = await client.get(f"/api/work-items/{item['id']}/available-bookings", headers=h)
    assert [t["name"] for t in r.json()] == ["Fibre install"]


@pytest.mark.asyncio
async def test_create_booking_requires_customer(client, tenant, auth):
    _, _, r = await _booking(client, auth("manager"), metadata={"ticketType": "Installation"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Work item missing customer ID"


@pytest.mark.asyncio
async def test_public_booking_flow(client, tenant, auth, splynx):
    h = auth("manager")
    _, item, r = await _booking(client, h)
    assert r.status_code == 200
    body = r.json()
    token = body["booking_token"]
    assert len(token) == 64
    assert body["booking_url"] == f"https://book.acme.io/book/{token}"

    r = await client.get(f"/api/public/bookings/{token}")
    assert r.status_code == 200
    details = r.json()
    assert details["customer_name"] == "Ada Lovelace"
    assert details["task_type_name"] == "Fibre install"
    assert details["ticket_subject"] == "New connection"

    start = date.today() + timedelta(days=7)
    r = await client.post(f"/api/public/bookings/{token}/available-slots",
                          json={"start_date": start.isoformat(), "end_date": (start + timedelta(days=6)).isoformat()})
    assert r.status_code == 200
    assert len(r.json()["slots"]) > 0
    assert splynx.queried[0]["project_id"] == 3

    r = await client.post(f"/api/public/bookings/{token}/confirm", json={"contact_number": "0400 000 000"})
    assert r.status_code == 400

    r = await client.post(f"/api/public/bookings/{token}/confirm",
                          json={"selected_datetime": "2030-01-07T10:00:00Z", "contact_number": "0400 000 000"})
    assert r.status_code == 200, r.text
    confirmed = r.json()
    assert confirmed["splynx_task_id"] == "777"
    assert confirmed["confirmation_message"] == "See you soon"

    sent = splynx.created[0]
    assert sent["customer_id"] == "1234"
    assert sent["project_id"] == 3
    assert sent["workflow_status_id"] == 9
    assert sent["scheduled_from"] == "2030-01-07 10:00:00"

    r = await client.get(f"/api/work-items/{item['id']}", headers=h)
    updated = r.json()
    assert updated["status"] == "In Progress"
    assert updated["workflow_metadata"]["bookedAppointment"]["taskId"] == "777"
    assert updated["workflow_metadata"]["customerId"] == "1234"

    # a confirmed link is spent
    r = await client.post(f"/api/public/bookings/{token}/confirm", json={"selected_datetime": "2030-01-08T10:00:00Z"})
    assert r.status_code == 400
    r = await client.get(f"/api/public/bookings/{token}")
    assert r.status_code == 410


@pytest.mark.asyncio
async def test_unknown_token(client, tenant):
    r = await client.get("/api/public/bookings/deadbeef")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_expired_token(client, tenant, auth, db_session, splynx):
    _, _, r = await _booking(client, auth("manager"))
    token = r.json()["booking_token"]
    await db_session.execute(
        update(BookingToken).where(BookingToken.token == token)
        .values(expires_at=datetime.now(timezone.utc) - timedelta(days=1))
    )
    await db_session.commit()

    r = await client.get(f"/api/public/bookings/{token}")
    assert r.status_code == 410
    r = await client.post(f"/api/public/bookings/{token}/confirm", json={"selected_datetime": "2030-01-07T10:00:00Z"})
    assert r.status_code == 410
    assert splynx.created == []


@pytest.mark.asyncio
async def test_slots_need_splynx_integration(client, tenant, auth):
    _, _, r = await _booking(client, auth("manager"))
    token = r.json()["booking_token"]
    r = await client.post(f"/api/public/bookings/{token}/available-slots", json={})
    assert r.status_code == 400
    assert r.json()["detail"] == "Splynx integration is not configured"


@pytest.mark.asyncio
async def test_malformed_org_time_zone_falls_back_to_utc(client, tenant, auth, db_session, splynx):
    await db_session.execute(update(Organization).where(Organization.id == tenant.org.id).values(time_zone="../Etc/UTC"))
    await db_session.commit()
    _, _, r = await _booking(client, auth("manager"))
    token = r.json()["booking_token"]

    start = date.today() + timedelta(days=7)
    r = await client.post(f"/api/public/bookings/{token}/available-slots",
                          json={"start_date": start.isoformat(), "end_date": (start + timedelta(days=6)).isoformat()})
    assert r.status_code == 200
    assert len(r.json()["slots"]) > 0
