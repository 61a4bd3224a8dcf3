from typing import cast

from redis.asyncio import Redis

from loggers import get_logger

logger = get_logger(__name__)

REDIS_SOCKET_TIMEOUT = 5.0
REDIS_HEALTH_CHECK_INTERVAL = 30


def create_redis_client(connection_url: str, *, decode_responses: bool = True) -> Redis:
    """
    Create the async client that backs the refresh token store.

    Responses are decoded so hash fields come back as ``str``.
    """
    try:
        client = Redis.from_url(
            connection_url,
            decode_responses=decode_responses,
            socket_timeout=REDIS_SOCKET_TIMEOUT,
            health_check_interval=REDIS_HEALTH_CHECK_INTERVAL,
        )
        return cast(Redis, client)
    except ValueError as exc:
        logger.error("Invalid Redis connection url: %s", exc)
        raise
