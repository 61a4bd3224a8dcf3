from typing import Annotated

from fastapi import APIRouter, Depends

from src.core.schemas import SuccessResponse
from src.user.auth.dependencies import get_access_token_identity, get_client_meta
from src.user.auth.schemas import (
    AuthResponseModel,
    ClientMeta,
    LoginUserModel,
    LogoutRequestModel,
    RefreshTokenRequestModel,
    TokenRefreshModel,
)
from src.user.auth.tokens import VerifiedAccessToken
from src.user.auth.usecases.get_current_user import (
    GetCurrentUserUseCase,
    get_current_user_use_case,
)
from src.user.auth.usecases.login import LoginUserUseCase, get_login_user_use_case
from src.user.auth.usecases.logout import LogoutUserUseCase, get_logout_user_use_case
from src.user.auth.usecases.refresh_tokens import (
    RefreshTokensUseCase,
    get_refresh_tokens_use_case,
)
from src.user.schemas import UserPublicView

router = APIRouter()


@router.post("/login", response_model=AuthResponseModel)
async def login_user(
    login_form_data: LoginUserModel,
    client: Annotated[ClientMeta, Depends(get_client_meta)],
    use_case: Annotated[LoginUserUseCase, Depends(get_login_user_use_case)],
) -> AuthResponseModel:
    """
    Authenticate user and return an access/refresh token pair.
    """
    return await use_case.execute(data=login_form_data, client=client)


@router.post("/refresh", response_model=TokenRefreshModel)
async def refresh_tokens(
    data: RefreshTokenRequestModel,
    client: Annotated[ClientMeta, Depends(get_client_meta)],
    use_case: Annotated[RefreshTokensUseCase, Depends(get_refresh_tokens_use_case)],
) -> TokenRefreshModel:
    """
    Exchange a refresh token for a new pair. Each refresh token works once.
    """
    return await use_case.execute(refresh_token=data.refresh_token, client=client)


@router.post("/logout", response_model=SuccessResponse)
async def logout_user(
    identity: Annotated[VerifiedAccessToken, Depends(get_access_token_identity)],
    use_case: Annotated[LogoutUserUseCase, Depends(get_logout_user_use_case)],
    data: LogoutRequestModel | None = None,
) -> SuccessResponse:
    """
    Revoke the given refresh token, or every session with ``revoke_all``.
    """
    data = data or LogoutRequestModel()
    await use_case.execute(
        user_id=identity.user_id,
        refresh_token=data.refresh_token,
        revoke_all=data.revoke_all,
    )
    return SuccessResponse(success=True)


@router.get("/me", response_model=UserPublicView)
async def get_me(
    identity: Annotated[VerifiedAccessToken, Depends(get_access_token_identity)],
    use_case: Annotated[GetCurrentUserUseCase, Depends(get_current_user_use_case)],
) -> UserPublicView:
    return await use_case.execute(user_id=identity.user_id)
