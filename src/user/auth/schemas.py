from pydantic import BaseModel, ConfigDict, Field

from src.core.schemas import Base
from src.user.schemas import UserPublicView


class ClientMeta(BaseModel):
    ip_address: str | None = None
    user_agent: str | None = None

    model_config = ConfigDict(frozen=True)


class LoginUserModel(Base):
    username: str = Field(min_length=1, max_length=60)
    password: str = Field(min_length=1)


class RefreshTokenRequestModel(Base):
    refresh_token: str = Field(min_length=1)


class LogoutRequestModel(Base):
    refresh_token: str | None = None
    revoke_all: bool = False


class TokenRefreshModel(Base):
    access_token: str
    refresh_token: str
    expires_in: int


class AuthResponseModel(TokenRefreshModel):
    user: UserPublicView
