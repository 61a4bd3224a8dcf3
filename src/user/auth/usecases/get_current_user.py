from fastapi import Depends

from loggers import get_logger
from src.core.utils.security import mask_username
from src.user.auth.dependencies import get_credential_store
from src.user.auth.exceptions import AccountInactiveException, UserNotFoundException
from src.user.auth.ports import CredentialStore
from src.user.schemas import UserPublicView

logger = get_logger(__name__)


class GetCurrentUserUseCase:
    def __init__(self, credential_store: CredentialStore) -> None:
        self.credential_store = credential_store

    async def execute(self, user_id: str) -> UserPublicView:
        user = await self.credential_store.find_by_id(user_id)
        if user is None:
            logger.warning("[GetCurrentUser] User %s not found", user_id)
            raise UserNotFoundException()

        if not user.is_active:
            logger.warning(
                "[GetCurrentUser] Inactive user '%s' requested profile",
                mask_username(user.username),
            )
            raise AccountInactiveException()

        return UserPublicView.model_validate(user)


def get_current_user_use_case(
    credential_store: CredentialStore = Depends(get_credential_store),
) -> GetCurrentUserUseCase:
    return GetCurrentUserUseCase(credential_store=credential_store)
