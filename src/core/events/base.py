from datetime import datetime
from typing import Any, ClassVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from src.core.utils.datetime_utils import get_utc_now


class DomainEvent(BaseModel):
    """
    Immutable fact published after a state change.

    Subclasses set ``event_name``; subscribers register against that name.
    """

    event_name: ClassVar[str] = "domain_event"

    event_id: str = Field(default_factory=lambda: uuid4().hex)
    occurred_on: datetime = Field(default_factory=get_utc_now)

    model_config = ConfigDict(frozen=True)

    def to_payload(self) -> dict[str, Any]:
        return {"event_name": self.event_name, **self.model_dump(mode="json")}
