from collections.abc import AsyncGenerator, Generator
import os

os.environ.setdefault("TESTING", "true")

from fastapi import FastAPI  # noqa: E402
import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from src.core.events.dependencies import get_event_bus  # noqa: E402
from src.core.redis.dependencies import get_redis_client  # noqa: E402
from src.main.config import Config, get_settings  # noqa: E402
from src.main.web import get_application  # noqa: E402
from src.user.auth.dependencies import (  # noqa: E402
    get_clock,
    get_credential_store,
    get_password_hasher,
)
from src.user.auth.incidents import SecurityIncidentResponder  # noqa: E402
from src.user.auth.store import RedisRefreshTokenStore  # noqa: E402
from src.user.auth.tokens import JWTTokenIssuer, TokenSettings  # noqa: E402
from src.user.enums import UserRole  # noqa: E402
from src.user.models import User  # noqa: E402
from tests.factories.user_factory import DEFAULT_PASSWORD, build_user  # noqa: E402
from tests.fakes.clock import FrozenClock  # noqa: E402
from tests.fakes.events import RecordingPublisher  # noqa: E402
from tests.fakes.redis import InMemoryRedis  # noqa: E402
from tests.fakes.users import FastPasswordHasher, InMemoryCredentialStore  # noqa: E402
from tests.helpers.overrides import DependencyOverrides  # noqa: E402


@pytest.fixture(scope="session")
def settings() -> Config:
    get_settings.cache_clear()
    return get_settings()


@pytest.fixture
def app() -> FastAPI:
    return get_application()


@pytest.fixture
def dependency_overrides(app: FastAPI) -> Generator[DependencyOverrides]:
    overrides = DependencyOverrides(app)
    yield overrides
    overrides.reset()


@pytest.fixture
def fake_redis() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def password_hasher() -> FastPasswordHasher:
    return FastPasswordHasher()


@pytest.fixture
def user() -> User:
    return build_user(username="jdoe", password=DEFAULT_PASSWORD, role=UserRole.EDITOR)


@pytest.fixture
def other_user() -> User:
    return build_user(
        username="asmith",
        first_name="Alice",
        last_name="Smith",
        email="asmith@example.com",
        password=DEFAULT_PASSWORD,
        role=UserRole.VIEWER,
    )


@pytest.fixture
def credential_store(user: User, other_user: User) -> InMemoryCredentialStore:
    return InMemoryCredentialStore(user, other_user)


@pytest.fixture
def token_settings(settings: Config) -> TokenSettings:
    return TokenSettings.from_config(settings.jwt)


@pytest.fixture
def token_issuer(settings: Config, clock: FrozenClock) -> JWTTokenIssuer:
    return JWTTokenIssuer.from_config(settings.jwt, clock=clock)


@pytest.fixture
def refresh_store(fake_redis: InMemoryRedis) -> RedisRefreshTokenStore:
    return RedisRefreshTokenStore(redis_client=fake_redis)  # type: ignore[arg-type]


@pytest.fixture
def incident_responder(
    credential_store: InMemoryCredentialStore,
    refresh_store: RedisRefreshTokenStore,
    publisher: RecordingPublisher,
    clock: FrozenClock,
) -> SecurityIncidentResponder:
    return SecurityIncidentResponder(
        credential_store=credential_store,
        refresh_store=refresh_store,
        event_publisher=publisher,
        clock=clock,
    )


@pytest.fixture
def app_with_fakes(
    app: FastAPI,
    dependency_overrides: DependencyOverrides,
    fake_redis: InMemoryRedis,
    clock: FrozenClock,
    publisher: RecordingPublisher,
    password_hasher: FastPasswordHasher,
    credential_store: InMemoryCredentialStore,
) -> FastAPI:
    dependency_overrides.provide(get_redis_client, fake_redis)
    dependency_overrides.provide(get_event_bus, publisher)
    dependency_overrides.provide(get_clock, clock)
    dependency_overrides.provide(get_password_hasher, password_hasher)
    dependency_overrides.provide(get_credential_store, credential_store)
    return app


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://testserver"
    ) as client:
        yield client


@pytest_asyncio.fixture
async def async_client_with_fakes(
    app_with_fakes: FastAPI,
) -> AsyncGenerator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app_with_fakes)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://testserver"
    ) as client:
        yield client
