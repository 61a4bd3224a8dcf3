from typing import Literal, TypedDict


class AccessTokenClaims(TypedDict):
    """Claims signed into an access token"""

    sub: str  # User ID
    username: str
    role: str
    mode: Literal["access_token"]
    iat: int
    exp: int
    jti: str


class RefreshTokenClaims(TypedDict):
    """Claims signed into a refresh token"""

    sub: str  # User ID
    mode: Literal["refresh_token"]
    iat: int
    exp: int
    jti: str  # Makes two tokens minted in the same second differ
