from types import TracebackType
from unittest.mock import AsyncMock
from uuid import UUID

import pytest

from src.user.models import User
from src.user.repositories import UserCredentialStore, UserRepository
from tests.factories.user_factory import build_user


class FakeSession:
    def __init__(self) -> None:
        self.closed = False

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.closed = True


class FakeSessionFactory:
    def __init__(self) -> None:
        self.sessions: list[FakeSession] = []

    def __call__(self) -> FakeSession:
        session = FakeSession()
        self.sessions.append(session)
        return session


@pytest.fixture
def session_factory() -> FakeSessionFactory:
    return FakeSessionFactory()


@pytest.fixture
def repository() -> UserRepository:
    repo = UserRepository()
    repo.get_single = AsyncMock()  # type: ignore[method-assign]
    return repo


@pytest.mark.asyncio
async def test_find_by_username_uses_short_lived_session(
    session_factory: FakeSessionFactory, repository: UserRepository, user: User
) -> None:
    repository.get_single.return_value = user  # type: ignore[attr-defined]
    store = UserCredentialStore(session_factory, repository)  # type: ignore[arg-type]

    found = await store.find_by_username("jdoe")

    assert found is user
    [session] = session_factory.sessions
    assert session.closed is True
    repository.get_single.assert_awaited_once_with(session, username="jdoe")  # type: ignore[attr-defined]


@pytest.mark.asyncio
async def test_find_by_id_parses_uuid(
    session_factory: FakeSessionFactory, repository: UserRepository
) -> None:
    user = build_user()
    repository.get_single.return_value = user  # type: ignore[attr-defined]
    store = UserCredentialStore(session_factory, repository)  # type: ignore[arg-type]

    found = await store.find_by_id(str(user.id))

    assert found is user
    _, kwargs = repository.get_single.call_args  # type: ignore[attr-defined]
    assert kwargs == {"id": UUID(str(user.id))}


@pytest.mark.asyncio
async def test_find_by_id_with_malformed_subject(
    session_factory: FakeSessionFactory, repository: UserRepository
) -> None:
    store = UserCredentialStore(session_factory, repository)  # type: ignore[arg-type]

    assert await store.find_by_id("not-a-uuid") is None
    assert session_factory.sessions == []


def test_user_full_name_and_repr() -> None:
    user = build_user(first_name="Ada", last_name="Lovelace", username="ada")

    assert user.full_name == "Ada Lovelace"
    assert "username='ada'" in repr(user)
