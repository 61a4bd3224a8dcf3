import httpx
import pytest

from src.core.errors import handlers
from src.user.auth.events import RefreshTokenReuseDetected, UserLoggedIn
from src.user.auth.exceptions import REFRESH_TOKEN_REUSE_MESSAGE
from src.user.auth.tokens import TokenSettings
from src.user.models import User
from tests.factories.user_factory import DEFAULT_PASSWORD
from tests.fakes.clock import FrozenClock
from tests.fakes.events import RecordingPublisher
from tests.helpers.requests import bearer_headers

LOGIN_URL = "/v1/auth/login"
REFRESH_URL = "/v1/auth/refresh"
LOGOUT_URL = "/v1/auth/logout"
ME_URL = "/v1/auth/me"


async def _login(
    client: httpx.AsyncClient, username: str = "jdoe", password: str = DEFAULT_PASSWORD
) -> httpx.Response:
    return await client.post(LOGIN_URL, json={"username": username, "password": password})


@pytest.mark.asyncio
async def test_login_returns_tokens_and_user(
    async_client_with_fakes: httpx.AsyncClient,
    user: User,
    token_settings: TokenSettings,
    publisher: RecordingPublisher,
) -> None:
    response = await async_client_with_fakes.post(
        LOGIN_URL,
        json={"username": "jdoe", "password": DEFAULT_PASSWORD},
        headers={"User-Agent": "pytest-client"},
    )

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"access_token", "refresh_token", "expires_in", "user"}
    assert body["expires_in"] == token_settings.access_token_ttl_seconds
    assert body["user"]["id"] == str(user.id)
    assert body["user"]["name"] == "John Doe"
    assert "password" not in body["user"]
    assert response.headers["Cache-Control"] == "no-store"
    [event] = publisher.of_type(UserLoggedIn)
    assert event.user_agent == "pytest-client"  # type: ignore[attr-defined]


@pytest.mark.asyncio
async def test_login_with_wrong_password(
    async_client_with_fakes: httpx.AsyncClient,
) -> None:
    response = await _login(async_client_with_fakes, password="wrong-password")

    assert response.status_code == 401
    assert response.json() == {
        "error": "Unauthorized",
        "message": "Incorrect username or password.",
        "code": "INVALID_CREDENTIALS",
    }


@pytest.mark.asyncio
async def test_login_of_inactive_user(
    async_client_with_fakes: httpx.AsyncClient, user: User
) -> None:
    user.is_active = False

    response = await _login(async_client_with_fakes)

    assert response.status_code == 401
    assert response.json()["code"] == "USER_INACTIVE"


@pytest.mark.asyncio
async def test_login_validation_error_does_not_echo_password(
    async_client_with_fakes: httpx.AsyncClient,
) -> None:
    response = await async_client_with_fakes.post(
        LOGIN_URL, json={"username": "", "password": "p@ssw0rd-secret"}
    )

    assert response.status_code == 422
    assert "p@ssw0rd-secret" not in response.text


@pytest.mark.asyncio
async def test_refresh_rotates_and_detects_reuse(
    async_client_with_fakes: httpx.AsyncClient,
    publisher: RecordingPublisher,
) -> None:
    first = (await _login(async_client_with_fakes)).json()

    rotated = await async_client_with_fakes.post(
        REFRESH_URL, json={"refresh_token": first["refresh_token"]}
    )
    assert rotated.status_code == 200
    assert set(rotated.json()) == {"access_token", "refresh_token", "expires_in"}

    replay = await async_client_with_fakes.post(
        REFRESH_URL, json={"refresh_token": first["refresh_token"]}
    )
    assert replay.status_code == 401
    assert replay.json()["code"] == "INVALID_TOKEN"
    assert replay.json()["message"] == REFRESH_TOKEN_REUSE_MESSAGE
    assert publisher.of_type(RefreshTokenReuseDetected)

    legit = await async_client_with_fakes.post(
        REFRESH_URL, json={"refresh_token": rotated.json()["refresh_token"]}
    )
    assert legit.status_code == 401


@pytest.mark.asyncio
async def test_refresh_with_expired_token(
    async_client_with_fakes: httpx.AsyncClient,
    token_settings: TokenSettings,
    clock: FrozenClock,
) -> None:
    tokens = (await _login(async_client_with_fakes)).json()
    clock.advance(seconds=token_settings.refresh_token_ttl_seconds + 1)

    response = await async_client_with_fakes.post(
        REFRESH_URL, json={"refresh_token": tokens["refresh_token"]}
    )

    assert response.status_code == 401
    assert response.json()["code"] == "EXPIRED_REFRESH_TOKEN_ATTEMPT"
    assert "user_id" not in response.text


@pytest.mark.asyncio
async def test_refresh_with_garbage(async_client_with_fakes: httpx.AsyncClient) -> None:
    response = await async_client_with_fakes.post(
        REFRESH_URL, json={"refresh_token": "garbage"}
    )

    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_me_requires_bearer_token(
    async_client_with_fakes: httpx.AsyncClient,
) -> None:
    response = await async_client_with_fakes.get(ME_URL)

    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_me_returns_profile_until_access_token_expires(
    async_client_with_fakes: httpx.AsyncClient,
    user: User,
    token_settings: TokenSettings,
    clock: FrozenClock,
) -> None:
    tokens = (await _login(async_client_with_fakes)).json()
    headers = bearer_headers(tokens["access_token"])

    response = await async_client_with_fakes.get(ME_URL, headers=headers)
    assert response.status_code == 200
    assert response.json()["username"] == user.username

    clock.advance(seconds=token_settings.access_token_ttl_seconds)
    expired = await async_client_with_fakes.get(ME_URL, headers=headers)
    assert expired.status_code == 401
    assert expired.json()["code"] == "TOKEN_EXPIRED"


@pytest.mark.asyncio
async def test_refresh_token_is_not_a_bearer_token(
    async_client_with_fakes: httpx.AsyncClient,
) -> None:
    tokens = (await _login(async_client_with_fakes)).json()

    response = await async_client_with_fakes.get(
        ME_URL, headers=bearer_headers(tokens["refresh_token"])
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_logout_everywhere_kills_other_sessions(
    async_client_with_fakes: httpx.AsyncClient,
) -> None:
    laptop = (await _login(async_client_with_fakes)).json()
    phone = (await _login(async_client_with_fakes)).json()

    response = await async_client_with_fakes.post(
        LOGOUT_URL, json={"revoke_all": True}, headers=bearer_headers(laptop["access_token"])
    )

    assert response.status_code == 200
    assert response.json() == {"success": True}
    refresh = await async_client_with_fakes.post(
        REFRESH_URL, json={"refresh_token": phone["refresh_token"]}
    )
    assert refresh.status_code == 401


@pytest.mark.asyncio
async def test_logout_single_session(
    async_client_with_fakes: httpx.AsyncClient,
) -> None:
    laptop = (await _login(async_client_with_fakes)).json()
    phone = (await _login(async_client_with_fakes)).json()

    response = await async_client_with_fakes.post(
        LOGOUT_URL,
        json={"refresh_token": laptop["refresh_token"]},
        headers=bearer_headers(laptop["access_token"]),
    )

    assert response.status_code == 200
    refresh = await async_client_with_fakes.post(
        REFRESH_URL, json={"refresh_token": phone["refresh_token"]}
    )
    assert refresh.status_code == 200


@pytest.mark.asyncio
async def test_logout_without_body_succeeds(
    async_client_with_fakes: httpx.AsyncClient,
) -> None:
    tokens = (await _login(async_client_with_fakes)).json()

    response = await async_client_with_fakes.post(
        LOGOUT_URL, headers=bearer_headers(tokens["access_token"])
    )

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_logout_requires_access_token(
    async_client_with_fakes: httpx.AsyncClient,
) -> None:
    response = await async_client_with_fakes.post(LOGOUT_URL, json={"revoke_all": True})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_missing_token_storage_is_an_infrastructure_error(
    async_client: httpx.AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(handlers.sentry_sdk, "capture_exception", lambda *_: None)

    response = await async_client.post(REFRESH_URL, json={"refresh_token": "x"})

    assert response.status_code == 500
    assert response.json()["code"] == "INFRASTRUCTURE_ERROR"
