from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from redis.asyncio import Redis

from src.core.database.session import async_session
from src.core.events.bus import InMemoryEventBus
from src.core.events.dependencies import get_event_bus
from src.core.redis.dependencies import get_redis_client
from src.core.utils.datetime_utils import Clock, SystemClock
from src.core.utils.security import Argon2PasswordHasher
from src.main.config import config
from src.user.auth.exceptions import InvalidTokenException
from src.user.auth.incidents import SecurityIncidentResponder
from src.user.auth.schemas import ClientMeta
from src.user.auth.store import RedisRefreshTokenStore
from src.user.auth.tokens import JWTTokenIssuer, TokenSettings, VerifiedAccessToken
from src.user.repositories import UserCredentialStore

bearer_scheme = HTTPBearer(scheme_name="access-token", auto_error=False)


@lru_cache
def get_clock() -> Clock:
    return SystemClock()


@lru_cache
def get_password_hasher() -> Argon2PasswordHasher:
    return Argon2PasswordHasher()


def get_token_settings() -> TokenSettings:
    return TokenSettings.from_config(config.jwt)


def get_token_issuer(clock: Clock = Depends(get_clock)) -> JWTTokenIssuer:
    return JWTTokenIssuer.from_config(config.jwt, clock=clock)


def get_credential_store() -> UserCredentialStore:
    return UserCredentialStore(session_factory=async_session)


def get_refresh_token_store(
    redis_client: Redis = Depends(get_redis_client),
) -> RedisRefreshTokenStore:
    return RedisRefreshTokenStore(redis_client=redis_client)


def get_incident_responder(
    credential_store: UserCredentialStore = Depends(get_credential_store),
    refresh_store: RedisRefreshTokenStore = Depends(get_refresh_token_store),
    event_bus: InMemoryEventBus = Depends(get_event_bus),
    clock: Clock = Depends(get_clock),
) -> SecurityIncidentResponder:
    return SecurityIncidentResponder(
        credential_store=credential_store,
        refresh_store=refresh_store,
        event_publisher=event_bus,
        clock=clock,
    )


def get_client_meta(request: Request) -> ClientMeta:
    return ClientMeta(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


async def get_access_token_identity(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Security(bearer_scheme)
    ],
    token_issuer: JWTTokenIssuer = Depends(get_token_issuer),
) -> VerifiedAccessToken:
    """
    Verify the Bearer access token of the request.

    Raises:
        InvalidTokenException: If the header is missing or the token is invalid
        TokenExpiredException: If the token has expired
    """
    if credentials is None or not credentials.credentials:
        raise InvalidTokenException("Authentication token not found.")
    return token_issuer.verify_access_token(credentials.credentials)
