from typing import cast

from fastapi import Request
from redis.asyncio import Redis

from src.core.errors.exceptions import InfrastructureException


async def get_redis_client(request: Request) -> Redis:
    """Redis client created by the lifespan and kept on ``app.state``."""
    redis_client = getattr(request.app.state, "redis_client", None)
    if redis_client is None:
        raise InfrastructureException(
            "Token storage is unavailable",
            additional_info={"reason": "redis client not initialized"},
        )
    return cast(Redis, redis_client)
