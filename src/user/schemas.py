from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, Field

from src.core.schemas import Base
from src.user.enums import UserRole


class UserPublicView(Base):
    id: UUID
    username: str
    name: str = Field(validation_alias=AliasChoices("full_name", "name"))
    email: str
    role: UserRole
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
