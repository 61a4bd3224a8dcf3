from datetime import datetime
from typing import ClassVar

from src.core.events.base import DomainEvent


class UserLoggedIn(DomainEvent):
    event_name: ClassVar[str] = "auth.user.logged_in"

    user_id: str
    username: str
    ip_address: str | None = None
    user_agent: str | None = None


class UserLoggedOut(DomainEvent):
    event_name: ClassVar[str] = "auth.user.logged_out"

    user_id: str
    username: str
    revoked_all_tokens: bool
    refresh_token_id: str | None = None


class RefreshTokenReuseDetected(DomainEvent):
    event_name: ClassVar[str] = "auth.security.refresh_token_reuse_detected"

    user_id: str
    refresh_token_id: str
    token_preview: str
    token_revoked_at: datetime
    all_tokens_revoked: bool = True
    ip_address: str | None = None
    user_agent: str | None = None


class ExpiredRefreshTokenAttemptDetected(DomainEvent):
    event_name: ClassVar[str] = "auth.security.expired_refresh_token_attempt"

    user_id: str
    token_expired_at: datetime
    token_preview: str
    all_tokens_revoked: bool = True
    refresh_token_id: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None


SECURITY_INCIDENT_EVENTS = (
    RefreshTokenReuseDetected,
    ExpiredRefreshTokenAttemptDetected,
)
AUTH_EVENTS = (UserLoggedIn, UserLoggedOut, *SECURITY_INCIDENT_EVENTS)
