from typing import Any


class CoreException(Exception):
    code: str = "BAD_REQUEST"

    def __init__(
        self,
        message: str | None = None,
        additional_info: dict[str, Any] | None = None,
        code: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.additional_info = additional_info
        if code is not None:
            self.code = code


class InfrastructureException(CoreException):
    code = "INFRASTRUCTURE_ERROR"


class InstanceNotFoundException(CoreException):
    code = "NOT_FOUND"


class UnauthorizedException(CoreException):
    code = "UNAUTHORIZED"
