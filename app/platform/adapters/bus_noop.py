import json
import logging
from app.platform.ports.event_bus import EventBusPort

log = logging.getLogger("bus.noop")

class NoopEventBus(EventBusPort):
    """Logs events instead of delivering them. Used in local dev and tests."""

    name = "noop"

    def __init__(self):
        self.published_count = 0

    async def publish(self, topic: str, key: str, value: dict, headers: dict | None = None) -> None:
        self.published_count += 1
        log.info(
            "event %s on %s for %s (org=%s) %s",
            value.get("event_type"), topic, key, value.get("org_id"),
            json.dumps(value.get("payload") or {}, default=str),
        )

    async def close(self) -> None:
        log.debug("noop bus closed after %d events", self.published_count)
