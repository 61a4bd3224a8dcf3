from fastapi import FastAPI

from loggers import get_logger
from src.core.redis.core import create_redis_client

logger = get_logger("redis")


async def on_redis_startup(app: FastAPI, connection_url: str) -> None:
    """Create the Redis client, check it answers and attach it to ``app.state``."""
    redis_client = create_redis_client(connection_url=connection_url)
    if not await redis_client.ping():
        await redis_client.aclose()
        raise RuntimeError("Redis ping failed during startup")
    app.state.redis_client = redis_client
    logger.info("Redis client created successfully.")


async def on_redis_shutdown(app: FastAPI) -> None:
    redis_client = getattr(app.state, "redis_client", None)
    if redis_client is not None:
        logger.info("Closing Redis client...")
        await redis_client.aclose()
        app.state.redis_client = None
        logger.info("Redis client closed.")
