from fastapi import FastAPI

from loggers import get_logger
from src.core.events.bus import InMemoryEventBus

logger = get_logger("events")


async def on_event_bus_startup(app: FastAPI, max_queue_size: int) -> InMemoryEventBus:
    event_bus = InMemoryEventBus(max_queue_size=max_queue_size)
    event_bus.start()
    app.state.event_bus = event_bus
    return event_bus


async def on_event_bus_shutdown(app: FastAPI) -> None:
    event_bus = getattr(app.state, "event_bus", None)
    if event_bus is not None:
        logger.info("Draining event bus...")
        await event_bus.stop()
        app.state.event_bus = None
