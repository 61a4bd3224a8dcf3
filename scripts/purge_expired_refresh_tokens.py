"""Remove expired refresh token records.

Meant to be run periodically by an external scheduler (cron, k8s CronJob):

    python -m scripts.purge_expired_refresh_tokens
"""

import asyncio

from loggers import get_logger
from src.core.redis.core import create_redis_client
from src.core.utils.datetime_utils import SystemClock
from src.main.config import config
from src.user.auth.store import RedisRefreshTokenStore
from src.user.auth.usecases.purge_expired import PurgeExpiredRefreshTokensUseCase

logger = get_logger(__name__)


async def purge_expired_refresh_tokens() -> int:
    redis_client = create_redis_client(config.redis.dsn)
    try:
        use_case = PurgeExpiredRefreshTokensUseCase(
            refresh_store=RedisRefreshTokenStore(redis_client), clock=SystemClock()
        )
        return await use_case.execute()
    finally:
        await redis_client.aclose()


if __name__ == "__main__":
    deleted = asyncio.run(purge_expired_refresh_tokens())
    logger.info("Purge finished, %s record(s) deleted", deleted)
