from datetime import datetime
from typing import Self
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from src.core.utils.datetime_utils import ensure_aware_utc, from_timestamp


class RefreshTokenRecord(BaseModel):
    """
    One issued refresh token.

    ``revoked`` only ever goes from False to True. Owner, expiry and token
    value are fixed at creation.
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    token: str
    owner_id: str
    expires_at: datetime
    revoked: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(validate_assignment=True)

    @classmethod
    def issue(
        cls, token: str, owner_id: str, expires_at: datetime, now: datetime
    ) -> Self:
        if not token:
            raise ValueError("Refresh token value is required")
        if not owner_id:
            raise ValueError("Refresh token owner is required")
        expires_at = ensure_aware_utc(expires_at)
        now = ensure_aware_utc(now)
        if expires_at <= now:
            raise ValueError("Refresh token expiry must be in the future")
        return cls(
            token=token,
            owner_id=owner_id,
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
        )

    def is_expired(self, now: datetime) -> bool:
        return ensure_aware_utc(now) >= self.expires_at

    def is_valid(self, now: datetime) -> bool:
        return not self.revoked and not self.is_expired(now)

    def revoke(self, now: datetime) -> None:
        if self.revoked:
            return
        self.revoked = True
        self.updated_at = ensure_aware_utc(now)

    def to_redis_hash(self) -> dict[str, str]:
        return {
            "id": self.id,
            "token": self.token,
            "owner_id": self.owner_id,
            "expires_at": str(self.expires_at.timestamp()),
            "revoked": "1" if self.revoked else "0",
            "created_at": str(self.created_at.timestamp()),
            "updated_at": str(self.updated_at.timestamp()),
        }

    @classmethod
    def from_redis_hash(cls, data: dict[str, str]) -> Self:
        return cls(
            id=data["id"],
            token=data["token"],
            owner_id=data["owner_id"],
            expires_at=from_timestamp(float(data["expires_at"])),
            revoked=data.get("revoked") == "1",
            created_at=from_timestamp(float(data["created_at"])),
            updated_at=from_timestamp(float(data["updated_at"])),
        )
