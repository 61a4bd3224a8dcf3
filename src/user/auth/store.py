from collections.abc import Awaitable
from datetime import datetime
from typing import Any, cast

from redis.asyncio import Redis

from loggers import get_logger
from src.core.utils.datetime_utils import ensure_aware_utc
from src.core.utils.security import hash_token_value
from src.user.auth.exceptions import RefreshTokenNotFoundException
from src.user.auth.records import RefreshTokenRecord
from src.user.auth.redis_scripts import (
    CREATE_REFRESH_TOKEN_SCRIPT,
    REVOKE_ALL_BY_OWNER_SCRIPT,
    REVOKE_IF_ACTIVE_SCRIPT,
)

logger = get_logger(__name__)

KEY_PREFIX = "refresh_token"


class RedisRefreshTokenStore:
    """
    Refresh token records kept in Redis.

    Layout:
        ``refresh_token:record:{id}``     hash with the record fields
        ``refresh_token:value:{sha256}``  id of the record holding that token
        ``refresh_token:owner:{owner}``   set of record ids of one owner

    Tokens are indexed by digest so raw values never appear in key names.
    Records carry no Redis TTL; they are removed only by ``delete_expired``.
    """

    def __init__(self, redis_client: Redis, key_prefix: str = KEY_PREFIX):
        self.redis_client = redis_client
        self._prefix = key_prefix

    def _record_key(self, record_id: str) -> str:
        return f"{self._prefix}:record:{record_id}"

    def _value_key(self, token: str) -> str:
        return f"{self._prefix}:value:{hash_token_value(token)}"

    def _owner_key(self, owner_id: str) -> str:
        return f"{self._prefix}:owner:{owner_id}"

    async def _load(self, record_id: str) -> RefreshTokenRecord | None:
        data: dict[str, str] = await self.redis_client.hgetall(
            self._record_key(record_id)
        )  # type: ignore[misc]
        if not data:
            return None
        return RefreshTokenRecord.from_redis_hash(data)

    async def create(self, record: RefreshTokenRecord) -> RefreshTokenRecord:
        fields = record.to_redis_hash()
        stored_id: str = await cast(
            Awaitable[str],
            self.redis_client.eval(
                CREATE_REFRESH_TOKEN_SCRIPT,
                3,
                self._record_key(record.id),
                self._value_key(record.token),
                self._owner_key(record.owner_id),
                fields["id"],
                fields["token"],
                fields["owner_id"],
                fields["expires_at"],
                fields["revoked"],
                fields["created_at"],
                fields["updated_at"],
            ),
        )
        if stored_id == record.id:
            logger.debug(
                "Refresh token %s stored for owner %s", record.id, record.owner_id
            )
            return record

        logger.warning(
            "Refresh token value already stored as %s, keeping the existing record",
            stored_id,
        )
        existing = await self._load(stored_id)
        if existing is None:
            raise RefreshTokenNotFoundException(stored_id)
        return existing

    async def find_by_token(self, token: str) -> RefreshTokenRecord | None:
        if not token:
            return None
        record_id = await self.redis_client.get(self._value_key(token))
        if record_id is None:
            return None
        record = await self._load(record_id)
        # A stale index entry resolves to no record.
        if record is None or record.token != token:
            return None
        return record

    async def find_by_id(self, record_id: str) -> RefreshTokenRecord | None:
        return await self._load(record_id)

    async def find_by_owner(self, owner_id: str) -> list[RefreshTokenRecord]:
        record_ids = await self.redis_client.smembers(self._owner_key(owner_id))  # type: ignore[misc]
        records = []
        for record_id in sorted(record_ids):
            record = await self._load(record_id)
            if record is not None:
                records.append(record)
        records.sort(key=lambda r: r.created_at)
        return records

    async def find_active_by_owner(
        self, owner_id: str, now: datetime
    ) -> list[RefreshTokenRecord]:
        return [r for r in await self.find_by_owner(owner_id) if r.is_valid(now)]

    async def update(self, record: RefreshTokenRecord) -> RefreshTokenRecord:
        record_key = self._record_key(record.id)
        if not await self.redis_client.exists(record_key):
            raise RefreshTokenNotFoundException(record.id)
        await self.redis_client.hset(record_key, mapping=record.to_redis_hash())  # type: ignore[misc]
        return record

    async def revoke_if_active(self, record_id: str, now: datetime) -> bool:
        """
        Atomically revoke a record that is not revoked yet.

        Returns False when another caller revoked it first.
        """
        result: int = await cast(
            Awaitable[int],
            self.redis_client.eval(
                REVOKE_IF_ACTIVE_SCRIPT,
                1,
                self._record_key(record_id),
                str(ensure_aware_utc(now).timestamp()),
            ),
        )
        if int(result) < 0:
            raise RefreshTokenNotFoundException(record_id)
        return int(result) == 1

    async def revoke_all_by_owner(self, owner_id: str, now: datetime) -> int:
        flipped: int = await cast(
            Awaitable[int],
            self.redis_client.eval(
                REVOKE_ALL_BY_OWNER_SCRIPT,
                1,
                self._owner_key(owner_id),
                str(ensure_aware_utc(now).timestamp()),
                f"{self._prefix}:record:",
            ),
        )
        logger.info("Revoked %s refresh token(s) of owner %s", flipped, owner_id)
        return int(flipped)

    async def delete_expired(self, now: datetime) -> int:
        cutoff = ensure_aware_utc(now)
        deleted = 0
        async for record_key in self.redis_client.scan_iter(
            match=f"{self._prefix}:record:*", count=500
        ):
            data: dict[str, Any] = await self.redis_client.hgetall(record_key)  # type: ignore[misc]
            if not data:
                continue
            record = RefreshTokenRecord.from_redis_hash(data)
            if record.expires_at >= cutoff:
                continue

            await self.redis_client.delete(record_key, self._value_key(record.token))
            await self.redis_client.srem(self._owner_key(record.owner_id), record.id)  # type: ignore[misc]
            deleted += 1

        if deleted:
            logger.info("Deleted %s expired refresh token(s)", deleted)
        return deleted

    async def exists_by_token(self, token: str) -> bool:
        if not token:
            return False
        return bool(await self.redis_client.exists(self._value_key(token)))
