from datetime import timedelta

from fastapi import Depends

from loggers import get_logger
from src.core.utils.datetime_utils import Clock
from src.core.utils.security import mask_username
from src.user.auth.dependencies import (
    get_clock,
    get_credential_store,
    get_incident_responder,
    get_refresh_token_store,
    get_token_issuer,
    get_token_settings,
)
from src.user.auth.exceptions import (
    REFRESH_TOKEN_REUSE_MESSAGE,
    ExpiredRefreshTokenAttemptException,
    InvalidTokenException,
    TokenExpiredException,
)
from src.user.auth.incidents import SecurityIncidentResponder
from src.user.auth.ports import CredentialStore, RefreshTokenStore
from src.user.auth.records import RefreshTokenRecord
from src.user.auth.schemas import ClientMeta, TokenRefreshModel
from src.user.auth.tokens import JWTTokenIssuer, TokenSettings, VerifiedRefreshToken

logger = get_logger(__name__)


class RefreshTokensUseCase:
    """
    Exchange a refresh token for a new token pair.

    Every refresh token is single-use. Presenting a revoked one is treated
    as theft, and presenting an expired one as a replay; both revoke every
    session of the owner before failing.
    """

    def __init__(
        self,
        token_issuer: JWTTokenIssuer,
        refresh_store: RefreshTokenStore,
        credential_store: CredentialStore,
        incident_responder: SecurityIncidentResponder,
        token_settings: TokenSettings,
        clock: Clock,
    ) -> None:
        self.token_issuer = token_issuer
        self.refresh_store = refresh_store
        self.credential_store = credential_store
        self.incident_responder = incident_responder
        self.token_settings = token_settings
        self.clock = clock

    async def execute(
        self, refresh_token: str, client: ClientMeta | None = None
    ) -> TokenRefreshModel:
        verified = await self._verify(refresh_token, client)

        record = await self.refresh_store.find_by_token(refresh_token)
        if record is None:
            logger.warning(
                "[RefreshTokens] Token of user %s not found in store", verified.user_id
            )
            raise InvalidTokenException("Refresh token not found.")

        # Revocation is checked first: a revoked and expired token is still reuse.
        if record.revoked:
            logger.warning(
                "[RefreshTokens] Revoked token %s presented again by user %s",
                record.id,
                verified.user_id,
            )
            await self.incident_responder.handle_reuse(record, refresh_token, client)
            raise InvalidTokenException(REFRESH_TOKEN_REUSE_MESSAGE)

        if record.is_expired(self.clock.now()):
            logger.warning(
                "[RefreshTokens] Expired token %s presented by user %s",
                record.id,
                verified.user_id,
            )
            await self.incident_responder.handle_expired_attempt(
                user_id=record.owner_id,
                expired_at=record.expires_at,
                token=refresh_token,
                refresh_token_id=record.id,
                client=client,
            )
            raise ExpiredRefreshTokenAttemptException(record.owner_id, record.id)

        if record.owner_id != verified.user_id:
            logger.error(
                "[RefreshTokens] Token %s owner %s does not match subject %s",
                record.id,
                record.owner_id,
                verified.user_id,
            )
            raise InvalidTokenException("Refresh token owner mismatch.")

        user = await self.credential_store.find_by_id(verified.user_id)
        if user is None:
            logger.error("[RefreshTokens] User %s no longer exists", verified.user_id)
            raise InvalidTokenException("User linked to the token not found.")
        if not user.is_active:
            logger.warning(
                "[RefreshTokens] Inactive user '%s' attempted refresh",
                mask_username(user.username),
            )
            raise InvalidTokenException("User is inactive.")

        now = self.clock.now()
        if not await self.refresh_store.revoke_if_active(record.id, now):
            # Another request consumed this token between the lookup and now.
            logger.warning(
                "[RefreshTokens] Token %s consumed concurrently, treating as reuse",
                record.id,
            )
            consumed = await self.refresh_store.find_by_id(record.id) or record
            await self.incident_responder.handle_reuse(consumed, refresh_token, client)
            raise InvalidTokenException(REFRESH_TOKEN_REUSE_MESSAGE)

        user_id = str(user.id)
        new_refresh_token = self.token_issuer.issue_refresh_token(user_id)
        new_record = await self.refresh_store.create(
            RefreshTokenRecord.issue(
                token=new_refresh_token,
                owner_id=user_id,
                expires_at=now
                + timedelta(seconds=self.token_settings.refresh_token_ttl_seconds),
                now=now,
            )
        )
        access_token = self.token_issuer.issue_access_token(
            user_id, user.username, str(user.role)
        )

        logger.info(
            "[RefreshTokens] Rotated token %s -> %s for user '%s'",
            record.id,
            new_record.id,
            mask_username(user.username),
        )
        return TokenRefreshModel(
            access_token=access_token,
            refresh_token=new_refresh_token,
            expires_in=self.token_settings.access_token_ttl_seconds,
        )

    async def _verify(
        self, refresh_token: str, client: ClientMeta | None
    ) -> VerifiedRefreshToken:
        try:
            return self.token_issuer.verify_refresh_token(refresh_token)
        except (InvalidTokenException, TokenExpiredException) as exc:
            failure = exc

        logger.warning(
            "[RefreshTokens] Refresh token failed verification: %s", failure.message
        )
        # Any token whose claims still show a past expiry is a replay, whatever failed.
        decoded = self.token_issuer.decode_unverified(refresh_token)
        if (
            decoded is None
            or not decoded.user_id
            or decoded.expires_at is None
            or decoded.expires_at > self.clock.now()
        ):
            raise InvalidTokenException("Invalid refresh token.") from failure

        record = await self.refresh_store.find_by_token(refresh_token)
        refresh_token_id = record.id if record else None
        await self.incident_responder.handle_expired_attempt(
            user_id=decoded.user_id,
            expired_at=decoded.expires_at,
            token=refresh_token,
            refresh_token_id=refresh_token_id,
            client=client,
        )
        raise ExpiredRefreshTokenAttemptException(
            decoded.user_id, refresh_token_id
        ) from failure


def get_refresh_tokens_use_case(
    token_issuer: JWTTokenIssuer = Depends(get_token_issuer),
    refresh_store: RefreshTokenStore = Depends(get_refresh_token_store),
    credential_store: CredentialStore = Depends(get_credential_store),
    incident_responder: SecurityIncidentResponder = Depends(get_incident_responder),
    token_settings: TokenSettings = Depends(get_token_settings),
    clock: Clock = Depends(get_clock),
) -> RefreshTokensUseCase:
    return RefreshTokensUseCase(
        token_issuer=token_issuer,
        refresh_store=refresh_store,
        credential_store=credential_store,
        incident_responder=incident_responder,
        token_settings=token_settings,
        clock=clock,
    )
