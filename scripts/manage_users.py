"""User account bootstrap commands.

Run from the project root:

    python -m scripts.manage_users init-db
    python -m scripts.manage_users create-user --username jdoe --email j@example.com
"""

import asyncio

import click

from loggers import get_logger
from src.core.database.base import Base
from src.core.database.engine import engine
from src.core.database.session import async_session
from src.core.utils.security import hash_password
from src.core.validations import PASSWORD_MIN_LENGTH, USERNAME_VALIDATOR
from src.user.enums import UserRole
from src.user.models import User
from src.user.repositories import UserRepository

logger = get_logger(__name__)


async def _create_tables() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()


async def _create_user(data: dict[str, object]) -> User:
    repository = UserRepository()
    try:
        async with async_session() as session:
            if await repository.exists(session, username=data["username"]):
                raise click.ClickException(f"User '{data['username']}' already exists")
            return await repository.create(session, data, commit=True)
    finally:
        await engine.dispose()


@click.group()
def cli() -> None:
    """Manage user accounts."""


@cli.command("init-db")
def init_db() -> None:
    """Create the users table if it does not exist."""
    asyncio.run(_create_tables())
    click.echo("Tables created.")


@cli.command("create-user")
@click.option("--username", required=True)
@click.option("--first-name", required=True)
@click.option("--last-name", required=True)
@click.option("--email", required=True)
@click.option(
    "--role",
    type=click.Choice(sorted(UserRole.values())),
    default=UserRole.VIEWER.value,
    show_default=True,
)
@click.option("--inactive", is_flag=True, help="Create the account disabled.")
@click.password_option()
def create_user(
    username: str,
    first_name: str,
    last_name: str,
    email: str,
    role: str,
    inactive: bool,
    password: str,
) -> None:
    """Create a user with an Argon2-hashed password."""
    if not USERNAME_VALIDATOR.match(username):
        raise click.BadParameter(
            "3 to 60 characters: letters, digits, underscore, dash and dot",
            param_hint="--username",
        )
    if len(password) < PASSWORD_MIN_LENGTH:
        raise click.BadParameter(
            f"must be at least {PASSWORD_MIN_LENGTH} characters", param_hint="--password"
        )

    user = asyncio.run(
        _create_user(
            {
                "username": username,
                "first_name": first_name,
                "last_name": last_name,
                "email": email.strip().lower(),
                "password": hash_password(password),
                "role": UserRole(role),
                "is_active": not inactive,
            }
        )
    )
    logger.info("Created user %s with role %s", user.id, role)
    click.echo(f"Created user {user.id}")


if __name__ == "__main__":
    cli()
