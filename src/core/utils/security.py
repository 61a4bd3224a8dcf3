import asyncio
import hashlib

from passlib.context import CryptContext

from loggers import get_logger

logger = get_logger(__name__)

pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__memory_cost=65536,  # 64 MB
    argon2__time_cost=3,
    argon2__parallelism=2,
)

TOKEN_PREVIEW_EDGE = 10


def hash_password(password: str) -> str:
    """
    Hashes the provided password using Argon2 with the configured parameters.

    :param password: The plaintext password as a string.
    :return: The hashed password as a string.
    """
    return pwd_context.hash(password)


class Argon2PasswordHasher:
    """Password hasher backed by the module-level Argon2 ``CryptContext``."""

    def __init__(self, context: CryptContext = pwd_context):
        self._context = context
        self._dummy_hash: str | None = None

    def hash(self, plain: str) -> str:
        return self._context.hash(plain)

    async def verify(self, plain: str, hashed: str) -> bool:
        try:
            return await asyncio.to_thread(self._context.verify, plain, hashed)
        except ValueError:
            return False

    async def verify_dummy(self, plain: str) -> None:
        """Spend the same work as a real verify when there is no user to check."""
        if self._dummy_hash is None:
            self._dummy_hash = await asyncio.to_thread(
                self._context.hash, "dummy-password-for-timing"
            )
        await self.verify(plain, self._dummy_hash)


def mask_username(username: str | None) -> str:
    """
    Masks a username for logs.
    Mask pattern: ab***

    Args:
        username: str
            The username to mask.

    Returns:
        str
            The first two characters followed by asterisks.
    """
    if not username:
        return "***"
    return username[:2] + "***"


def build_token_preview(token: str) -> str:
    """
    Redacted preview of a token for logs and incident events.

    Long tokens keep their first and last ten characters; short ones only the
    first ten.
    """
    if len(token) <= TOKEN_PREVIEW_EDGE * 2:
        return f"{token[:TOKEN_PREVIEW_EDGE]}..."
    return f"{token[:TOKEN_PREVIEW_EDGE]}...{token[-TOKEN_PREVIEW_EDGE:]}"


def hash_token_value(token: str) -> str:
    """SHA-256 hex digest used to index tokens without storing them as keys."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
