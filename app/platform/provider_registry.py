import logging
from app.core.config import settings
from app.platform.ports.event_bus import EventBusPort
from app.platform.adapters.bus_noop import NoopEventBus

log = logging.getLogger("platform.registry")

BUS_PROVIDERS = ("noop", "redis")

def build_event_bus(provider: str | None) -> EventBusPort:
    prov = (provider or "noop").lower()
    if prov not in BUS_PROVIDERS:
        raise ValueError(f"Unknown EVENT_BUS_PROVIDER {provider!r}; expected one of {', '.join(BUS_PROVIDERS)}")
    if prov == "redis":
        # redis client only needed when the stream bus is selected
        from app.platform.adapters.bus_redis import RedisEventBus
        return RedisEventBus()
    return NoopEventBus()

class ProviderRegistry:
    """Process-wide holder for pluggable infrastructure; currently just the event bus."""

    _event_bus: EventBusPort | None = None

    @classmethod
    def event_bus(cls) -> EventBusPort:
        if cls._event_bus is None:
            cls._event_bus = build_event_bus(settings.EVENT_BUS_PROVIDER)
            log.info("Event bus ready: %s", getattr(cls._event_bus, "name", cls._event_bus.__class__.__name__))
        return cls._event_bus

    @classmethod
    def set_event_bus(cls, bus: EventBusPort | None) -> None:
        cls._event_bus = bus

    @classmethod
    async def shutdown(cls) -> None:
        bus, cls._event_bus = cls._event_bus, None
        if bus is not None:
            await bus.close()

registry = ProviderRegistry()
