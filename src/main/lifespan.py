from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from loggers import get_logger
from src.core.events.lifecycle import on_event_bus_shutdown, on_event_bus_startup
from src.core.redis.lifecycle import on_redis_shutdown, on_redis_startup
from src.main.config import config
from src.main.sentry import init_sentry
from src.user.auth.audit import SecurityAuditHandler

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    init_sentry()
    await on_redis_startup(app, config.redis.dsn)

    event_bus = await on_event_bus_startup(app, config.events.EVENT_QUEUE_MAX_SIZE)
    SecurityAuditHandler().register(event_bus)

    yield

    await on_event_bus_shutdown(app)
    await on_redis_shutdown(app)
