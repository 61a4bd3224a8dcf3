from typing import Any

import sentry_sdk

from loggers import get_audit_logger
from src.core.events.base import DomainEvent
from src.core.events.bus import InMemoryEventBus
from src.user.auth.events import AUTH_EVENTS, SECURITY_INCIDENT_EVENTS

audit_logger = get_audit_logger()

_INCIDENT_EVENT_NAMES = frozenset(event.event_name for event in SECURITY_INCIDENT_EVENTS)


class SecurityAuditHandler:
    """Writes one audit line per authentication event."""

    def register(self, event_bus: InMemoryEventBus) -> None:
        for event_type in AUTH_EVENTS:
            event_bus.subscribe(event_type.event_name, self)

    def unregister(self, event_bus: InMemoryEventBus) -> None:
        for event_type in AUTH_EVENTS:
            event_bus.unsubscribe(event_type.event_name, self)

    async def __call__(self, event: DomainEvent) -> None:
        payload: dict[str, Any] = event.to_payload()
        details = " ".join(
            f"{key}={value}"
            for key, value in payload.items()
            if key not in {"event_name", "event_id"} and value is not None
        )
        line = f"{event.event_name} [{event.event_id}] {details}"

        is_incident = event.event_name in _INCIDENT_EVENT_NAMES
        if is_incident:
            audit_logger.critical(line)
        else:
            audit_logger.info(line)

        sentry_sdk.add_breadcrumb(
            category="auth",
            message=event.event_name,
            level="error" if is_incident else "info",
            data={k: v for k, v in payload.items() if k != "token_preview"},
        )
