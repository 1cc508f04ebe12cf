import pytest
from sqlalchemy import select

from app.modules.events.outbox import EventOutbox, backoff_seconds, relay_once
from app.platform.adapters.bus_noop import NoopEventBus
from app.platform.provider_registry import build_event_bus, registry

pytestmark = pytest.mark.asyncio


class RecordingBus:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.published = []

    async def publish(self, topic, key, value, headers=None):
        if self.fail:
            raise ConnectionError("broker unavailable")
        self.published.append((topic, key, value))


@pytest.fixture
def bus():
    def install(fail=False):
        b = RecordingBus(fail=fail)
        registry.set_event_bus(b)
        return b

    yield install
    registry.set_event_bus(None)


async def test_backoff_is_capped():
    assert [backoff_seconds(n) for n in (1, 2, 3)] == [2, 4, 8]
    assert backoff_seconds(10) == 60


async def test_relay_publishes_pending_events(client, tenant, auth, db_session, bus):
    recorder = bus()
    r = await client.post("/api/work-items", json={"title": "Outbox check"}, headers=auth("manager"))
    item_id = r.json()["id"]

    assert await relay_once(db_session) == 1
    topic, key, envelope = recorder.published[0]
    assert topic == "opshub.events"
    assert key == item_id
    assert envelope["event_type"] == "WORK_ITEM_CREATED"
    assert envelope["org_id"] == str(tenant.org.id)
    assert envelope["subject"] == {"type": "work_item", "id": item_id}

    rows = (await db_session.execute(select(EventOutbox))).scalars().all()
    assert [row.status for row in rows] == ["sent"]

    # nothing left to claim
    assert await relay_once(db_session) == 0


async def test_failed_publish_is_retried_later(client, tenant, auth, db_session, bus):
    bus(fail=True)
    await client.post("/api/work-items", json={"title": "Outbox failure"}, headers=auth("manager"))

    assert await relay_once(db_session) == 1
    row = (await db_session.execute(select(EventOutbox))).scalars().one()
    assert row.status == "pending"
    assert row.attempts == 1
    assert row.last_error == "broker unavailable"

    # backing off, so the next pass claims nothing
    assert await relay_once(db_session) == 0


async def test_unknown_bus_provider_is_rejected():
    with pytest.raises(ValueError):
        build_event_bus("kafka")
    assert isinstance(build_event_bus(None), NoopEventBus)


async def test_registry_shutdown_closes_and_resets_bus():
    noop = NoopEventBus()
    registry.set_event_bus(noop)
    await noop.publish("opshub.events", "k", {"event_type": "PING", "payload": {"n": 1}})
    assert noop.published_count == 1

    await registry.shutdown()
    assert registry._event_bus is None
    # a fresh bus is built from settings on next use
    assert isinstance(registry.event_bus(), NoopEventBus)
    registry.set_event_bus(None)
