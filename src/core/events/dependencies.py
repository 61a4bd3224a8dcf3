from typing import cast

from fastapi import Request

from src.core.errors.exceptions import InfrastructureException
from src.core.events.bus import InMemoryEventBus


async def get_event_bus(request: Request) -> InMemoryEventBus:
    """Event bus created by the lifespan and kept on ``app.state``."""
    event_bus = getattr(request.app.state, "event_bus", None)
    if event_bus is None:
        raise InfrastructureException(
            "Event bus is unavailable",
            additional_info={"reason": "event bus not initialized"},
        )
    return cast(InMemoryEventBus, event_bus)
