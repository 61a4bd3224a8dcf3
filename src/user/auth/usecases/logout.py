from fastapi import Depends

from loggers import get_logger
from src.core.events.dependencies import get_event_bus
from src.core.utils.datetime_utils import Clock
from src.core.utils.security import mask_username
from src.user.auth.dependencies import (
    get_clock,
    get_credential_store,
    get_refresh_token_store,
    get_token_issuer,
)
from src.user.auth.events import UserLoggedOut
from src.user.auth.exceptions import (
    InvalidTokenException,
    RefreshTokenNotFoundException,
    TokenExpiredException,
)
from src.user.auth.ports import CredentialStore, EventPublisher, RefreshTokenStore
from src.user.auth.tokens import JWTTokenIssuer

logger = get_logger(__name__)

UNKNOWN_USERNAME = "unknown"


class LogoutUserUseCase:
    """
    End one session, every session, or just record the intent.

    Logout never fails because of the presented refresh token: an invalid
    token, a token of another user or an unknown token is logged and ignored.
    """

    def __init__(
        self,
        credential_store: CredentialStore,
        token_issuer: JWTTokenIssuer,
        refresh_store: RefreshTokenStore,
        event_publisher: EventPublisher,
        clock: Clock,
    ) -> None:
        self.credential_store = credential_store
        self.token_issuer = token_issuer
        self.refresh_store = refresh_store
        self.event_publisher = event_publisher
        self.clock = clock

    async def execute(
        self,
        user_id: str,
        refresh_token: str | None = None,
        revoke_all: bool = False,
    ) -> None:
        user = await self.credential_store.find_by_id(user_id)
        username = user.username if user is not None else UNKNOWN_USERNAME

        if revoke_all:
            revoked_count = await self.refresh_store.revoke_all_by_owner(
                user_id, self.clock.now()
            )
            logger.info(
                "[LogoutUser] Revoked all %s session(s) of '%s'",
                revoked_count,
                mask_username(username),
            )
            self.event_publisher.publish(
                UserLoggedOut(user_id=user_id, username=username, revoked_all_tokens=True)
            )
            return

        if not refresh_token:
            logger.debug("[LogoutUser] Soft logout of '%s'", mask_username(username))
            self.event_publisher.publish(
                UserLoggedOut(user_id=user_id, username=username, revoked_all_tokens=False)
            )
            return

        await self._revoke_single(user_id, username, refresh_token)

    async def _revoke_single(self, user_id: str, username: str, refresh_token: str) -> None:
        try:
            verified = self.token_issuer.verify_refresh_token(refresh_token)
        except (InvalidTokenException, TokenExpiredException) as exc:
            logger.warning(
                "[LogoutUser] Ignoring unverifiable refresh token from '%s': %s",
                mask_username(username),
                exc.message,
            )
            return

        if verified.user_id != user_id:
            logger.warning(
                "[LogoutUser] User %s presented a refresh token of user %s",
                user_id,
                verified.user_id,
            )
            return

        record = await self.refresh_store.find_by_token(refresh_token)
        if record is None:
            logger.warning(
                "[LogoutUser] Refresh token of '%s' not found in store",
                mask_username(username),
            )
            return

        try:
            revoked = await self.refresh_store.revoke_if_active(
                record.id, self.clock.now()
            )
        except RefreshTokenNotFoundException:
            logger.info("[LogoutUser] Refresh token %s was swept before logout", record.id)
            return

        logger.info(
            "[LogoutUser] %s refresh token %s of '%s'",
            "Revoked" if revoked else "Already revoked",
            record.id,
            mask_username(username),
        )
        self.event_publisher.publish(
            UserLoggedOut(
                user_id=user_id,
                username=username,
                revoked_all_tokens=False,
                refresh_token_id=record.id,
            )
        )


def get_logout_user_use_case(
    credential_store: CredentialStore = Depends(get_credential_store),
    token_issuer: JWTTokenIssuer = Depends(get_token_issuer),
    refresh_store: RefreshTokenStore = Depends(get_refresh_token_store),
    event_publisher: EventPublisher = Depends(get_event_bus),
    clock: Clock = Depends(get_clock),
) -> LogoutUserUseCase:
    return LogoutUserUseCase(
        credential_store=credential_store,
        token_issuer=token_issuer,
        refresh_store=refresh_store,
        event_publisher=event_publisher,
        clock=clock,
    )
