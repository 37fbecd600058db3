"""Application settings and configuration.

This module defines all configuration options for the DOB Validator auth service.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dob_auth.utils.durations import parse_expires_in

StoreBackend = Literal["memory", "database", "redis"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="DOB Validator Auth", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # JWT authentication settings
    jwt_secret: str = Field(alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_expires_in: str = Field(default="7d", alias="JWT_EXPIRES_IN")

    # Wallet challenge settings
    challenge_ttl_seconds: int = Field(default=300, ge=1, alias="CHALLENGE_TTL_SECONDS")
    challenge_prefix: str = Field(default="DOB_VALIDATOR_AUTH", alias="CHALLENGE_PREFIX")

    # Challenge/session store selection
    store_backend: StoreBackend = Field(default="memory", alias="AUTH_STORE_BACKEND")
    store_timeout_seconds: float = Field(default=5.0, gt=0, alias="STORE_TIMEOUT_SECONDS")

    # Database configuration
    database_url: str = Field(default="sqlite:///./dob_auth.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Redis configuration for the shared challenge/session store
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    redis_key_prefix: str = Field(default="dob-auth", alias="REDIS_KEY_PREFIX")

    # Background sweep of expired challenges and sessions
    cleanup_enabled: bool = Field(default=True, alias="CLEANUP_ENABLED")
    cleanup_interval_seconds: float = Field(
        default=3600.0,
        gt=0,
        alias="CLEANUP_INTERVAL_SECONDS",
    )

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @field_validator("jwt_secret")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        """Reject blank signing secrets."""
        if not v or not v.strip():
            raise ValueError("JWT_SECRET must not be empty")
        return v

    @field_validator("jwt_expires_in")
    @classmethod
    def validate_jwt_expires_in(cls, v: str) -> str:
        """Fail at startup if the token lifetime cannot be parsed."""
        parse_expires_in(v)
        return v

    @property
    def token_lifetime_seconds(self) -> int:
        """Return the configured JWT lifetime in seconds."""
        return parse_expires_in(self.jwt_expires_in)


settings = Settings()  # type: ignore[call-arg]
