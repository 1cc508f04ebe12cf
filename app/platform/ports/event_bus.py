from typing import Protocol, runtime_checkable

@runtime_checkable
class EventBusPort(Protocol):
    """Destination for relayed outbox events (see app.modules.events.outbox)."""

    name: str

    async def publish(self, topic: str, key: str, value: dict, headers: dict | None = None) -> None:
        """Deliver one event envelope; raising leaves the outbox row pending for retry."""
        ...

    async def close(self) -> None: ...
