from datetime import datetime

from loggers import get_logger
from src.core.utils.datetime_utils import Clock
from src.core.utils.security import build_token_preview, mask_username
from src.user.auth.events import (
    ExpiredRefreshTokenAttemptDetected,
    RefreshTokenReuseDetected,
)
from src.user.auth.ports import CredentialStore, EventPublisher, RefreshTokenStore
from src.user.auth.records import RefreshTokenRecord
from src.user.auth.schemas import ClientMeta

logger = get_logger(__name__)

UNKNOWN_USERNAME = "unknown"


class SecurityIncidentResponder:
    """
    Containment for a refresh token that should never have been presented.

    Every live session of the owner is revoked, the incident is logged at
    CRITICAL and an event is published. Callers raise only after this returns.
    """

    def __init__(
        self,
        credential_store: CredentialStore,
        refresh_store: RefreshTokenStore,
        event_publisher: EventPublisher,
        clock: Clock,
    ):
        self.credential_store = credential_store
        self.refresh_store = refresh_store
        self.event_publisher = event_publisher
        self.clock = clock

    async def _resolve_username(self, user_id: str) -> str:
        try:
            user = await self.credential_store.find_by_id(user_id)
        except Exception:
            logger.warning(
                "Could not resolve username for %s during incident response",
                user_id,
                exc_info=True,
            )
            return UNKNOWN_USERNAME
        return user.username if user is not None else UNKNOWN_USERNAME

    async def handle_reuse(
        self,
        record: RefreshTokenRecord,
        token: str,
        client: ClientMeta | None = None,
    ) -> int:
        client = client or ClientMeta()
        revoked_count = await self.refresh_store.revoke_all_by_owner(
            record.owner_id, self.clock.now()
        )
        username = await self._resolve_username(record.owner_id)

        logger.critical(
            "[SecurityIncident] Refresh token reuse: user=%s (%s) token_id=%s "
            "revoked_at=%s revoked_tokens=%s ip=%s",
            record.owner_id,
            mask_username(username),
            record.id,
            record.updated_at.isoformat(),
            revoked_count,
            client.ip_address,
        )
        self.event_publisher.publish(
            RefreshTokenReuseDetected(
                user_id=record.owner_id,
                refresh_token_id=record.id,
                token_preview=build_token_preview(token),
                token_revoked_at=record.updated_at,
                all_tokens_revoked=True,
                ip_address=client.ip_address,
                user_agent=client.user_agent,
            )
        )
        return revoked_count

    async def handle_expired_attempt(
        self,
        user_id: str,
        expired_at: datetime,
        token: str,
        refresh_token_id: str | None = None,
        client: ClientMeta | None = None,
    ) -> int:
        client = client or ClientMeta()
        revoked_count = await self.refresh_store.revoke_all_by_owner(
            user_id, self.clock.now()
        )
        username = await self._resolve_username(user_id)

        logger.critical(
            "[SecurityIncident] Expired refresh token presented: user=%s (%s) "
            "token_id=%s expired_at=%s revoked_tokens=%s ip=%s",
            user_id,
            mask_username(username),
            refresh_token_id or "-",
            expired_at.isoformat(),
            revoked_count,
            client.ip_address,
        )
        self.event_publisher.publish(
            ExpiredRefreshTokenAttemptDetected(
                user_id=user_id,
                token_expired_at=expired_at,
                token_preview=build_token_preview(token),
                all_tokens_revoked=True,
                refresh_token_id=refresh_token_id,
                ip_address=client.ip_address,
                user_agent=client.user_agent,
            )
        )
        return revoked_count
