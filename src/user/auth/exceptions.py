from typing import Any

from src.core.errors.exceptions import InstanceNotFoundException, UnauthorizedException

REFRESH_TOKEN_REUSE_MESSAGE = (
    "Refresh token already used. All sessions have been revoked for security. "
    "Please sign in again."
)


class InvalidCredentialsException(UnauthorizedException):
    code = "INVALID_CREDENTIALS"

    def __init__(self, message: str = "Incorrect username or password.") -> None:
        super().__init__(message)


class AccountInactiveException(UnauthorizedException):
    code = "USER_INACTIVE"

    def __init__(self, message: str = "User account is inactive.") -> None:
        super().__init__(message)


class InvalidTokenException(UnauthorizedException):
    code = "INVALID_TOKEN"

    def __init__(
        self,
        message: str = "Invalid or malformed token.",
        additional_info: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, additional_info)


class TokenExpiredException(UnauthorizedException):
    code = "TOKEN_EXPIRED"

    def __init__(self, message: str = "Token expired.") -> None:
        super().__init__(message)


class ExpiredRefreshTokenAttemptException(UnauthorizedException):
    code = "EXPIRED_REFRESH_TOKEN_ATTEMPT"

    def __init__(self, user_id: str, refresh_token_id: str | None = None) -> None:
        super().__init__(
            "An expired refresh token was presented. All sessions have been "
            "revoked for security.",
            additional_info={
                "user_id": user_id,
                "refresh_token_id": refresh_token_id,
            },
        )
        self.user_id = user_id
        self.refresh_token_id = refresh_token_id


class RefreshTokenNotFoundException(InstanceNotFoundException):
    code = "NOT_FOUND"

    def __init__(self, record_id: str) -> None:
        super().__init__(
            "Refresh token not found.", additional_info={"record_id": record_id}
        )
        self.record_id = record_id


class UserNotFoundException(InstanceNotFoundException):
    code = "USER_NOT_FOUND"

    def __init__(self, message: str = "User not found.") -> None:
        super().__init__(message)
