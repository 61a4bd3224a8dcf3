from datetime import timedelta

import pytest

from src.user.auth.events import UserLoggedOut
from src.user.auth.records import RefreshTokenRecord
from src.user.auth.store import RedisRefreshTokenStore
from src.user.auth.tokens import JWTTokenIssuer, TokenSettings
from src.user.auth.usecases.logout import LogoutUserUseCase
from src.user.models import User
from tests.fakes.clock import FrozenClock
from tests.fakes.events import RecordingPublisher
from tests.fakes.users import InMemoryCredentialStore


@pytest.fixture
def use_case(
    credential_store: InMemoryCredentialStore,
    token_issuer: JWTTokenIssuer,
    refresh_store: RedisRefreshTokenStore,
    publisher: RecordingPublisher,
    clock: FrozenClock,
) -> LogoutUserUseCase:
    return LogoutUserUseCase(
        credential_store=credential_store,
        token_issuer=token_issuer,
        refresh_store=refresh_store,
        event_publisher=publisher,
        clock=clock,
    )


@pytest.fixture
def open_session(
    token_issuer: JWTTokenIssuer,
    refresh_store: RedisRefreshTokenStore,
    token_settings: TokenSettings,
    clock: FrozenClock,
):
    async def _open(owner: User) -> RefreshTokenRecord:
        token = token_issuer.issue_refresh_token(str(owner.id))
        now = clock.now()
        return await refresh_store.create(
            RefreshTokenRecord.issue(
                token=token,
                owner_id=str(owner.id),
                expires_at=now
                + timedelta(seconds=token_settings.refresh_token_ttl_seconds),
                now=now,
            )
        )

    return _open


@pytest.mark.asyncio
async def test_logout_revokes_only_the_presented_token(
    use_case: LogoutUserUseCase,
    open_session,
    user: User,
    refresh_store: RedisRefreshTokenStore,
    publisher: RecordingPublisher,
    clock: FrozenClock,
) -> None:
    current = await open_session(user)
    other_device = await open_session(user)

    await use_case.execute(str(user.id), refresh_token=current.token)

    active = await refresh_store.find_active_by_owner(str(user.id), clock.now())
    assert [r.id for r in active] == [other_device.id]
    [event] = publisher.of_type(UserLoggedOut)
    assert event.revoked_all_tokens is False  # type: ignore[attr-defined]
    assert event.refresh_token_id == current.id  # type: ignore[attr-defined]
    assert event.username == "jdoe"  # type: ignore[attr-defined]


@pytest.mark.asyncio
async def test_logout_everywhere_revokes_all_sessions(
    use_case: LogoutUserUseCase,
    open_session,
    user: User,
    other_user: User,
    refresh_store: RedisRefreshTokenStore,
    publisher: RecordingPublisher,
    clock: FrozenClock,
) -> None:
    await open_session(user)
    await open_session(user)
    bystander = await open_session(other_user)

    await use_case.execute(str(user.id), revoke_all=True)

    assert await refresh_store.find_active_by_owner(str(user.id), clock.now()) == []
    remaining = await refresh_store.find_active_by_owner(str(other_user.id), clock.now())
    assert [r.id for r in remaining] == [bystander.id]
    [event] = publisher.of_type(UserLoggedOut)
    assert event.revoked_all_tokens is True  # type: ignore[attr-defined]


@pytest.mark.asyncio
async def test_soft_logout_records_the_intent_only(
    use_case: LogoutUserUseCase,
    open_session,
    user: User,
    refresh_store: RedisRefreshTokenStore,
    publisher: RecordingPublisher,
    clock: FrozenClock,
) -> None:
    session = await open_session(user)

    await use_case.execute(str(user.id))

    active = await refresh_store.find_active_by_owner(str(user.id), clock.now())
    assert [r.id for r in active] == [session.id]
    [event] = publisher.of_type(UserLoggedOut)
    assert event.revoked_all_tokens is False  # type: ignore[attr-defined]
    assert event.refresh_token_id is None  # type: ignore[attr-defined]


@pytest.mark.asyncio
async def test_token_of_another_user_is_ignored(
    use_case: LogoutUserUseCase,
    open_session,
    user: User,
    other_user: User,
    refresh_store: RedisRefreshTokenStore,
    publisher: RecordingPublisher,
) -> None:
    victim = await open_session(other_user)

    await use_case.execute(str(user.id), refresh_token=victim.token)

    record = await refresh_store.find_by_id(victim.id)
    assert record is not None and record.revoked is False
    assert publisher.events == []


@pytest.mark.asyncio
@pytest.mark.parametrize("garbage", ["not-a-jwt", "a.b.c"])
async def test_garbage_token_is_ignored(
    use_case: LogoutUserUseCase,
    user: User,
    publisher: RecordingPublisher,
    garbage: str,
) -> None:
    await use_case.execute(str(user.id), refresh_token=garbage)

    assert publisher.events == []


@pytest.mark.asyncio
async def test_unknown_token_is_ignored(
    use_case: LogoutUserUseCase,
    user: User,
    token_issuer: JWTTokenIssuer,
    publisher: RecordingPublisher,
) -> None:
    await use_case.execute(
        str(user.id), refresh_token=token_issuer.issue_refresh_token(str(user.id))
    )

    assert publisher.events == []


@pytest.mark.asyncio
async def test_logging_out_twice_is_harmless(
    use_case: LogoutUserUseCase,
    open_session,
    user: User,
    refresh_store: RedisRefreshTokenStore,
) -> None:
    session = await open_session(user)

    await use_case.execute(str(user.id), refresh_token=session.token)
    await use_case.execute(str(user.id), refresh_token=session.token)

    record = await refresh_store.find_by_id(session.id)
    assert record is not None and record.revoked is True


@pytest.mark.asyncio
async def test_logout_of_missing_user_uses_placeholder_name(
    use_case: LogoutUserUseCase,
    user: User,
    credential_store: InMemoryCredentialStore,
    publisher: RecordingPublisher,
) -> None:
    credential_store.remove(str(user.id))

    await use_case.execute(str(user.id), revoke_all=True)

    [event] = publisher.of_type(UserLoggedOut)
    assert event.username == "unknown"  # type: ignore[attr-defined]


@pytest.mark.asyncio
async def test_logging_out_an_already_revoked_token_still_reports_logout(
    use_case: LogoutUserUseCase,
    open_session,
    user: User,
    refresh_store: RedisRefreshTokenStore,
    publisher: RecordingPublisher,
    clock: FrozenClock,
) -> None:
    session = await open_session(user)
    await refresh_store.revoke_if_active(session.id, clock.now())

    await use_case.execute(str(user.id), refresh_token=session.token)

    [event] = publisher.of_type(UserLoggedOut)
    assert event.refresh_token_id == session.id  # type: ignore[attr-defined]
    assert event.revoked_all_tokens is False  # type: ignore[attr-defined]
    record = await refresh_store.find_by_id(session.id)
    assert record is not None and record.revoked is True
