from datetime import timedelta

from fastapi import Depends

from loggers import get_logger
from src.core.events.dependencies import get_event_bus
from src.core.utils.datetime_utils import Clock
from src.core.utils.security import mask_username
from src.user.auth.dependencies import (
    get_clock,
    get_credential_store,
    get_password_hasher,
    get_refresh_token_store,
    get_token_issuer,
    get_token_settings,
)
from src.user.auth.events import UserLoggedIn
from src.user.auth.exceptions import (
    AccountInactiveException,
    InvalidCredentialsException,
)
from src.user.auth.ports import (
    CredentialStore,
    EventPublisher,
    PasswordHasher,
    RefreshTokenStore,
)
from src.user.auth.records import RefreshTokenRecord
from src.user.auth.schemas import AuthResponseModel, ClientMeta, LoginUserModel
from src.user.auth.tokens import JWTTokenIssuer, TokenSettings
from src.user.schemas import UserPublicView

logger = get_logger(__name__)


class LoginUserUseCase:
    """Use case for logging in user."""

    def __init__(
        self,
        credential_store: CredentialStore,
        password_hasher: PasswordHasher,
        token_issuer: JWTTokenIssuer,
        refresh_store: RefreshTokenStore,
        event_publisher: EventPublisher,
        token_settings: TokenSettings,
        clock: Clock,
    ) -> None:
        self.credential_store = credential_store
        self.password_hasher = password_hasher
        self.token_issuer = token_issuer
        self.refresh_store = refresh_store
        self.event_publisher = event_publisher
        self.token_settings = token_settings
        self.clock = clock

    async def execute(
        self,
        data: LoginUserModel,
        client: ClientMeta | None = None,
    ) -> AuthResponseModel:
        client = client or ClientMeta()
        user = await self.credential_store.find_by_username(data.username)
        if user is None:
            logger.debug(
                "[LoginUser] User '%s' not found.", mask_username(data.username)
            )
            await self.password_hasher.verify_dummy(data.password)
            raise InvalidCredentialsException()

        if not await self.password_hasher.verify(data.password, user.password):
            logger.debug(
                "[LoginUser] Incorrect password for user '%s'",
                mask_username(data.username),
            )
            raise InvalidCredentialsException()

        if not user.is_active:
            logger.info(
                "[LoginUser] Inactive user '%s' attempted login.",
                mask_username(data.username),
            )
            raise AccountInactiveException()

        user_id = str(user.id)
        access_token = self.token_issuer.issue_access_token(
            user_id, user.username, str(user.role)
        )
        refresh_token = self.token_issuer.issue_refresh_token(user_id)

        now = self.clock.now()
        await self.refresh_store.create(
            RefreshTokenRecord.issue(
                token=refresh_token,
                owner_id=user_id,
                expires_at=now
                + timedelta(seconds=self.token_settings.refresh_token_ttl_seconds),
                now=now,
            )
        )

        self.event_publisher.publish(
            UserLoggedIn(
                user_id=user_id,
                username=user.username,
                ip_address=client.ip_address,
                user_agent=client.user_agent,
            )
        )
        logger.info("[LoginUser] User '%s' logged in.", mask_username(user.username))

        return AuthResponseModel(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self.token_settings.access_token_ttl_seconds,
            user=UserPublicView.model_validate(user),
        )


def get_login_user_use_case(
    credential_store: CredentialStore = Depends(get_credential_store),
    password_hasher: PasswordHasher = Depends(get_password_hasher),
    token_issuer: JWTTokenIssuer = Depends(get_token_issuer),
    refresh_store: RefreshTokenStore = Depends(get_refresh_token_store),
    event_publisher: EventPublisher = Depends(get_event_bus),
    token_settings: TokenSettings = Depends(get_token_settings),
    clock: Clock = Depends(get_clock),
) -> LoginUserUseCase:
    return LoginUserUseCase(
        credential_store=credential_store,
        password_hasher=password_hasher,
        token_issuer=token_issuer,
        refresh_store=refresh_store,
        event_publisher=event_publisher,
        token_settings=token_settings,
        clock=clock,
    )
