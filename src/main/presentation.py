from fastapi import APIRouter, FastAPI
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from src.core.errors import handlers
from src.core.errors.exceptions import (
    CoreException,
    InfrastructureException,
    InstanceNotFoundException,
    UnauthorizedException,
)
from src.healthcheck import routers as healthcheck_routers
from src.user.auth import routers as auth_routers

# Resolved along the exception MRO: the most specific entry wins.
EXCEPTION_HANDLERS: tuple[tuple[type[Exception], object], ...] = (
    (RequestValidationError, handlers.RequestValidationExceptionHandler()),
    (ValidationError, handlers.ValidationErrorExceptionHandler()),
    (InfrastructureException, handlers.InfrastructureExceptionHandler()),
    (InstanceNotFoundException, handlers.InstanceNotFoundExceptionHandler()),
    (UnauthorizedException, handlers.UnauthorizedExceptionHandler()),
    (CoreException, handlers.CoreExceptionHandler()),
)


def include_routers(app: FastAPI) -> None:
    """
    Mounts the versioned auth API under /v1 and the unversioned healthcheck.
    """
    v1_router = APIRouter()
    v1_router.include_router(auth_routers.router, prefix="/auth", tags=["Auth"])

    app.include_router(v1_router, prefix="/v1")
    app.include_router(healthcheck_routers.router, tags=["Health"])


def include_exceptions_handlers(app: FastAPI) -> None:
    """
    Registers one response handler per exception family.

    Auth errors (bad credentials, token failures, security incidents) all
    extend UnauthorizedException and render as 401 with their own code.
    """
    for exc_class, handler in EXCEPTION_HANDLERS:
        app.add_exception_handler(exc_class, handlers.as_exception_handler(handler))
