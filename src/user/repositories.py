from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from loggers import get_logger
from src.core.database.repositories import BaseRepository
from src.core.utils.security import mask_username
from src.user.models import User

logger = get_logger(__name__)


class UserRepository(BaseRepository[User]):

    model = User


class UserCredentialStore:
    """
    Read-only view of the users table used by the authentication flows.

    Each lookup runs in its own short-lived session; the returned ``User``
    instances are detached and only their column attributes are read.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        repository: UserRepository | None = None,
    ):
        self._session_factory = session_factory
        self._repository = repository or UserRepository()

    async def find_by_username(self, username: str) -> User | None:
        async with self._session_factory() as session:
            user = await self._repository.get_single(session, username=username)
        if user is None:
            logger.debug("No user with username %s", mask_username(username))
        return user

    async def find_by_id(self, user_id: str) -> User | None:
        try:
            key = UUID(str(user_id))
        except ValueError:
            logger.debug("Malformed user id in token subject: %r", user_id)
            return None
        async with self._session_factory() as session:
            return await self._repository.get_single(session, id=key)
