from loggers import get_logger
from src.core.utils.datetime_utils import Clock
from src.user.auth.ports import RefreshTokenStore

logger = get_logger(__name__)


class PurgeExpiredRefreshTokensUseCase:
    """Physically remove refresh token records whose expiry has passed."""

    def __init__(self, refresh_store: RefreshTokenStore, clock: Clock) -> None:
        self.refresh_store = refresh_store
        self.clock = clock

    async def execute(self) -> int:
        now = self.clock.now()
        deleted = await self.refresh_store.delete_expired(now)
        logger.info(
            "[PurgeExpiredRefreshTokens] Removed %s record(s) expired before %s",
            deleted,
            now.isoformat(),
        )
        return deleted
