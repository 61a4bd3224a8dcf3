from collections.abc import Awaitable, Callable
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
import sentry_sdk
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from starlette.responses import Response

from loggers import get_logger

logger = get_logger(__name__)
timing_logger = get_logger("src.request.timing", plain_format=True)
UNEXPECTED_ERROR_DETAIL = "Unexpected error"
STORAGE_UNAVAILABLE_DETAIL = "Service temporarily unavailable. Please try again later."

# Responses under these paths carry credentials and must not be cached.
NO_STORE_PATH_PREFIXES = ("/v1/auth",)

def register_middlewares(app: FastAPI) -> None:
    """Registers all custom middlewares in proper order"""

    @app.middleware("http")
    async def security_headers_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Content-Security-Policy", "frame-ancestors 'none'")
        if request.url.path.startswith(NO_STORE_PATH_PREFIXES):
            response.headers.setdefault("Cache-Control", "no-store")
            response.headers.setdefault("Pragma", "no-cache")
        return response

    @app.middleware("http")
    async def request_timing_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start_time

        if process_time < 0.5:
            level = timing_logger.info
            category = "[FAST]"
        elif process_time < 2:
            level = timing_logger.warning
            category = "[MODERATE]"
        else:
            level = timing_logger.warning
            category = "[SLOW]"

        level(
            f"{category} {request.method} {request.url.path} "
            f"|{process_time:.3f}s|{response.status_code}"
        )
        return response

    @app.middleware("http")
    async def storage_error_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            return await call_next(request)
        except (RedisConnectionError, RedisTimeoutError) as exc:
            logger.error("Token storage unreachable at %s: %s", request.url.path, exc)
            sentry_sdk.capture_exception(exc)
            return JSONResponse(
                status_code=503, content={"detail": STORAGE_UNAVAILABLE_DETAIL}
            )
        except OperationalError as exc:
            logger.error(
                "Database connection error at %s: %s", request.url.path, exc.orig
            )
            sentry_sdk.capture_exception(exc)
            return JSONResponse(
                status_code=503, content={"detail": STORAGE_UNAVAILABLE_DETAIL}
            )
        except SQLAlchemyError as exc:
            logger.error("Database error at %s: %s", request.url.path, exc, exc_info=True)
            sentry_sdk.capture_exception(exc)
            return JSONResponse(
                status_code=500, content={"detail": "Database query error."}
            )

    @app.middleware("http")
    async def unexpected_error_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(
                "Unexpected error at %s: %s", request.url.path, e, exc_info=True
            )
            sentry_sdk.capture_exception(e)
            return JSONResponse(
                status_code=500, content={"detail": UNEXPECTED_ERROR_DETAIL}
            )
