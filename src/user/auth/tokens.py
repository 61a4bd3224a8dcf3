from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, cast
from uuid import uuid4

import jwt

from loggers import get_logger
from src.core.utils.datetime_utils import Clock, SystemClock, from_timestamp
from src.main.config import JWTConfig
from src.user.auth.exceptions import InvalidTokenException, TokenExpiredException
from src.user.auth.jwt_payload_schema import AccessTokenClaims, RefreshTokenClaims

logger = get_logger(__name__)

ACCESS_TOKEN_MODE = "access_token"
REFRESH_TOKEN_MODE = "refresh_token"


@dataclass(frozen=True)
class TokenSettings:
    access_token_ttl_seconds: int
    refresh_token_ttl_seconds: int

    @classmethod
    def from_config(cls, jwt_config: JWTConfig) -> "TokenSettings":
        return cls(
            access_token_ttl_seconds=jwt_config.access_token_ttl_seconds,
            refresh_token_ttl_seconds=jwt_config.refresh_token_ttl_seconds,
        )


@dataclass(frozen=True)
class VerifiedAccessToken:
    user_id: str
    username: str
    role: str


@dataclass(frozen=True)
class VerifiedRefreshToken:
    user_id: str


@dataclass(frozen=True)
class DecodedToken:
    """Claims read without any signature or expiry check."""

    user_id: str | None = None
    username: str | None = None
    role: str | None = None
    expires_at: datetime | None = None
    issued_at: datetime | None = None


class JWTTokenIssuer:
    """
    Signs and verifies the two token classes.

    Access and refresh tokens are signed with different secrets and carry a
    ``mode`` claim, so neither can be replayed as the other. Expiry is checked
    against the injected clock rather than the wall clock PyJWT would use.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        settings: TokenSettings,
        algorithm: str = "HS256",
        clock: Clock | None = None,
    ):
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self._settings = settings
        self._algorithm = algorithm
        self._clock = clock or SystemClock()

    @classmethod
    def from_config(
        cls, jwt_config: JWTConfig, clock: Clock | None = None
    ) -> "JWTTokenIssuer":
        return cls(
            access_secret=jwt_config.JWT_ACCESS_SECRET_KEY,
            refresh_secret=jwt_config.refresh_secret_key,
            settings=TokenSettings.from_config(jwt_config),
            algorithm=jwt_config.ALGORITHM,
            clock=clock,
        )

    @property
    def settings(self) -> TokenSettings:
        return self._settings

    def issue_access_token(self, user_id: str, username: str, role: str) -> str:
        if not user_id or not username or not role:
            raise ValueError("user_id, username and role are required")

        now = self._clock.now()
        expire = now + timedelta(seconds=self._settings.access_token_ttl_seconds)
        claims: AccessTokenClaims = {
            "sub": str(user_id),
            "username": username,
            "role": str(role),
            "mode": "access_token",
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
            "jti": str(uuid4()),
        }
        return str(jwt.encode(dict(claims), self._access_secret, self._algorithm))

    def issue_refresh_token(self, user_id: str) -> str:
        if not user_id:
            raise ValueError("user_id is required")

        now = self._clock.now()
        expire = now + timedelta(seconds=self._settings.refresh_token_ttl_seconds)
        claims: RefreshTokenClaims = {
            "sub": str(user_id),
            "mode": "refresh_token",
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
            "jti": str(uuid4()),
        }
        return str(jwt.encode(dict(claims), self._refresh_secret, self._algorithm))

    def verify_access_token(self, token: str) -> VerifiedAccessToken:
        payload = self._decode(token, self._access_secret, ACCESS_TOKEN_MODE)
        user_id = payload.get("sub")
        username = payload.get("username")
        role = payload.get("role")
        if not user_id or not username or not role:
            logger.warning("Access token with incomplete claims")
            raise InvalidTokenException("Token with incomplete payload.")
        claims = cast(AccessTokenClaims, payload)
        return VerifiedAccessToken(
            user_id=claims["sub"], username=claims["username"], role=claims["role"]
        )

    def verify_refresh_token(self, token: str) -> VerifiedRefreshToken:
        payload = self._decode(token, self._refresh_secret, REFRESH_TOKEN_MODE)
        user_id = payload.get("sub")
        if not user_id:
            logger.warning("Refresh token with incomplete claims")
            raise InvalidTokenException("Token with incomplete payload.")
        return VerifiedRefreshToken(user_id=str(user_id))

    def decode_unverified(self, token: str) -> DecodedToken | None:
        """
        Read claims without verifying anything.

        Only for classifying a token that already failed verification; the
        result must never authorize anything.
        """
        try:
            payload = jwt.decode(
                token,
                options={"verify_signature": False, "verify_exp": False},
                algorithms=[self._algorithm],
            )
        except jwt.PyJWTError:
            return None
        if not isinstance(payload, dict):
            return None

        return DecodedToken(
            user_id=_optional_str(payload.get("sub")),
            username=_optional_str(payload.get("username")),
            role=_optional_str(payload.get("role")),
            expires_at=_optional_datetime(payload.get("exp")),
            issued_at=_optional_datetime(payload.get("iat")),
        )

    def _decode(self, token: str, secret: str, mode: str) -> dict[str, Any]:
        if not token or not token.strip():
            raise InvalidTokenException("Empty token.")

        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                secret,
                algorithms=[self._algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": ["exp", "sub"],
                },
            )
        except jwt.PyJWTError as exc:
            logger.info("Token rejected: %s", exc)
            raise InvalidTokenException("Invalid token.") from exc

        if payload.get("mode") != mode:
            raise InvalidTokenException("Invalid token type.")

        expires_at = _optional_datetime(payload.get("exp"))
        if expires_at is None:
            raise InvalidTokenException("Invalid token.")
        if self._clock.now() >= expires_at:
            logger.debug("Token expired at %s", expires_at.isoformat())
            raise TokenExpiredException(f"Token expired at {expires_at.isoformat()}.")

        return payload


def _optional_str(value: Any) -> str | None:
    return str(value) if value not in (None, "") else None


def _optional_datetime(value: Any) -> datetime | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        return from_timestamp(value)
    except (OverflowError, OSError, ValueError):
        return None
