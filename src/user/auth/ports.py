from datetime import datetime
from typing import Any, Protocol

from src.core.events.base import DomainEvent
from src.user.auth.records import RefreshTokenRecord


class Subject(Protocol):
    """What the auth flows read from a user account."""

    id: Any
    username: str
    email: str
    role: Any
    is_active: bool
    password: str

    @property
    def full_name(self) -> str: ...


class CredentialStore(Protocol):
    async def find_by_username(self, username: str) -> Subject | None: ...

    async def find_by_id(self, user_id: str) -> Subject | None: ...


class PasswordHasher(Protocol):
    def hash(self, plain: str) -> str: ...

    async def verify(self, plain: str, hashed: str) -> bool: ...

    async def verify_dummy(self, plain: str) -> None: ...


class EventPublisher(Protocol):
    def publish(self, event: DomainEvent) -> None: ...


class RefreshTokenStore(Protocol):
    async def create(self, record: RefreshTokenRecord) -> RefreshTokenRecord: ...

    async def find_by_token(self, token: str) -> RefreshTokenRecord | None: ...

    async def find_by_id(self, record_id: str) -> RefreshTokenRecord | None: ...

    async def find_by_owner(self, owner_id: str) -> list[RefreshTokenRecord]: ...

    async def find_active_by_owner(
        self, owner_id: str, now: datetime
    ) -> list[RefreshTokenRecord]: ...

    async def update(self, record: RefreshTokenRecord) -> RefreshTokenRecord: ...

    async def revoke_if_active(self, record_id: str, now: datetime) -> bool: ...

    async def revoke_all_by_owner(self, owner_id: str, now: datetime) -> int: ...

    async def delete_expired(self, now: datetime) -> int: ...

    async def exists_by_token(self, token: str) -> bool: ...
