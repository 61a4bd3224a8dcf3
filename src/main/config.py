from functools import lru_cache
import json
import logging
import os
import re
from typing import Any

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.core.utils.datetime_utils import parse_duration_to_seconds

logger = logging.getLogger(__name__)

DURATION_PATTERN = re.compile(r"^\d+[smhd]?$")
MIN_SECRET_LENGTH = 32


class RedisConfig(BaseModel):
    REDIS_HOST: str
    REDIS_PORT: int
    REDIS_PASSWORD: str
    REDIS_DATABASE: str

    model_config = ConfigDict(extra="ignore")

    @property
    def dsn(self) -> str:
        return (
            f"redis://:"
            f"{self.REDIS_PASSWORD}@"
            f"{self.REDIS_HOST}:"
            f"{self.REDIS_PORT}/"
            f"{self.REDIS_DATABASE}"
        )


class SentryConfig(BaseModel):
    SENTRY_DSN: str | None = None
    SENTRY_ENV: str = "development"
    SENTRY_ENABLED: bool = False

    model_config = ConfigDict(extra="ignore")


class JWTConfig(BaseModel):
    JWT_ACCESS_SECRET_KEY: str = Field(min_length=MIN_SECRET_LENGTH)
    JWT_REFRESH_SECRET_KEY: str | None = None

    ALGORITHM: str = "HS256"

    ACCESS_TOKEN_EXPIRES_IN: str = "1h"
    REFRESH_TOKEN_EXPIRES_IN: str = "7d"

    model_config = ConfigDict(extra="ignore")

    @field_validator("ACCESS_TOKEN_EXPIRES_IN", "REFRESH_TOKEN_EXPIRES_IN")
    @classmethod
    def validate_duration(cls, value: str) -> str:
        value = value.strip()
        if not DURATION_PATTERN.match(value):
            raise ValueError(
                "Duration must be a number optionally followed by a unit (s, m, h, d). Examples: '1h', '3600', '7d'"
            )
        return value

    @model_validator(mode="after")
    def fallback_refresh_secret(self) -> "JWTConfig":
        if not self.JWT_REFRESH_SECRET_KEY:
            self.JWT_REFRESH_SECRET_KEY = self.JWT_ACCESS_SECRET_KEY
        if len(self.JWT_REFRESH_SECRET_KEY) < MIN_SECRET_LENGTH:
            raise ValueError(
                f"JWT_REFRESH_SECRET_KEY must be at least {MIN_SECRET_LENGTH} characters long"
            )
        return self

    @property
    def refresh_secret_key(self) -> str:
        return self.JWT_REFRESH_SECRET_KEY or self.JWT_ACCESS_SECRET_KEY

    @property
    def access_token_ttl_seconds(self) -> int:
        return parse_duration_to_seconds(self.ACCESS_TOKEN_EXPIRES_IN)

    @property
    def refresh_token_ttl_seconds(self) -> int:
        return parse_duration_to_seconds(self.REFRESH_TOKEN_EXPIRES_IN)


class PostgresConfig(BaseModel):
    DB_ECHO: bool = False

    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_HOST: str
    POSTGRES_PORT: int
    POSTGRES_DB: str

    model_config = ConfigDict(extra="ignore")

    @property
    def dsn_async(self) -> str:
        return (
            f"postgresql+asyncpg://"
            f"{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/"
            f"{self.POSTGRES_DB}"
        )


class EventBusConfig(BaseModel):
    EVENT_QUEUE_MAX_SIZE: int = Field(1000, gt=0)

    model_config = ConfigDict(extra="ignore")


class AppConfig(BaseModel):
    VERSION: str
    DEBUG: bool = False
    TESTING: bool = False

    LOG_LEVEL: str = "INFO"
    LOG_LEVEL_FILE: str = "WARNING"

    CORS_ALLOWED_ORIGINS: list[str] = Field(["*"])
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOWED_METHODS: list[str] = Field(["*"])
    CORS_ALLOWED_HEADERS: list[str] = Field(["*"])
    CORS_EXPOSE_HEADERS: list[str] = Field(["*"])

    PROJECT_NAME: str

    model_config = ConfigDict(extra="ignore")

    @field_validator(
        "CORS_ALLOWED_ORIGINS",
        "CORS_ALLOWED_METHODS",
        "CORS_ALLOWED_HEADERS",
        "CORS_EXPOSE_HEADERS",
        mode="before",
    )
    @classmethod
    def parse_cors_list(cls, v: Any) -> list[str]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip().startswith("[") and v.strip().endswith("]"):
            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return [str(item) for item in parsed]
            except json.JSONDecodeError:
                pass
        sep = "," if "," in v else ";"
        return [item.strip() for item in v.split(sep) if item.strip()]


class Config(BaseModel):
    app: AppConfig
    jwt: JWTConfig
    redis: RedisConfig
    sentry: SentryConfig
    postgres: PostgresConfig
    events: EventBusConfig

    model_config = ConfigDict(extra="ignore")


@lru_cache
def get_settings() -> Config:
    """
    Cached settings factory. Override in tests via monkeypatching or dependency overrides.
    """
    env_filename = ".env.test" if os.getenv("TESTING") == "true" else ".env"
    env_file_values = dotenv_values(env_filename)
    merged_env: dict[str, Any] = {
        k: v
        for k, v in {**env_file_values, **dict(os.environ)}.items()
        if v is not None
    }

    return Config(
        app=AppConfig(**merged_env),
        jwt=JWTConfig(**merged_env),
        redis=RedisConfig(**merged_env),
        sentry=SentryConfig(**merged_env),
        postgres=PostgresConfig(**merged_env),
        events=EventBusConfig(**merged_env),
    )


config = get_settings()


