"""
Centralized configuration management using pydantic-settings.
This module provides a single source of truth for all application configuration.
"""


import os

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.utils.logger import setup_logger

load_dotenv()


logger = setup_logger("core_config")

DEFAULT_SECRET_KEY = "your-secret-key-change-this-in-production"


class Settings(BaseSettings):
    """
    Application settings managed by pydantic-settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        env_prefix="",
    )

    # ===== Database Configuration =====
    app_database_url: str | None = Field(
        default=None,
        alias="ACADEMIC_BUDDY_DATABASE_URL",
        description="Application database URL (postgresql+asyncpg:// or sqlite+aiosqlite://)",
    )

    db_echo: bool = Field(
        default=False,
        alias="DB_ECHO",
        description="Echo SQL statements emitted by the engine",
    )

    # ===== Authentication Configuration =====
    secret_key: str = Field(
        default=DEFAULT_SECRET_KEY,
        alias="SECRET_KEY",
        description="Secret used to sign access tokens",
    )

    jwt_algorithm: str = Field(
        default="HS256",
        alias="JWT_ALGORITHM",
        description="Signing algorithm for access tokens",
    )

    access_token_expire_minutes: int = Field(
        default=1440,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
        description="Access token lifetime in minutes (default 24 hours)",
    )

    trust_identity_header: bool = Field(
        default=False,
        alias="TRUST_IDENTITY_HEADER",
        description="Accept the raw identity provider uid header when no bearer token is sent",
    )

    identity_header_name: str = Field(
        default="x-firebase-uid",
        alias="IDENTITY_HEADER_NAME",
        description="Header carrying the identity provider uid in compatibility mode",
    )

    # ===== Server Configuration =====
    server_host: str = Field(
        default="0.0.0.0", alias="SERVER_HOST", description="Server host address"
    )

    server_port: int = Field(
        default=8080, alias="SERVER_PORT", description="Server port number"
    )

    server_workers: int = Field(
        default=1, alias="SERVER_WORKERS", description="Number of uvicorn workers"
    )

    # ===== CORS Configuration =====
    cors_allow_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",  # Next.js dev server
            "http://127.0.0.1:3000",
        ],
        alias="CORS_ALLOW_ORIGINS",
        description="CORS allowed origins",
    )

    cors_allow_credentials: bool = Field(
        default=True,
        alias="CORS_ALLOW_CREDENTIALS",
        description="Whether to allow credentials in CORS requests",
    )

    cors_allow_methods: list[str] = Field(
        default_factory=lambda: ["*"],
        alias="CORS_ALLOW_METHODS",
        description="CORS allowed methods",
    )

    cors_allow_headers: list[str] = Field(
        default_factory=lambda: ["*"],
        alias="CORS_ALLOW_HEADERS",
        description="CORS allowed headers",
    )

    # User-facing hint for database connection errors
    db_unavailable_hint: str = os.getenv(
        "DB_UNAVAILABLE_HINT",
        "Database connection failed. The server may be offline or network connectivity is down.",
    )

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """Validate settings and log warnings for missing critical configurations."""

        if not self.app_database_url:
            logger.warning("ACADEMIC_BUDDY_DATABASE_URL environment variable not set.")

        if self.secret_key == DEFAULT_SECRET_KEY:
            logger.warning(
                "SECRET_KEY is using the built-in default. Set it before deploying."
            )

        if self.trust_identity_header:
            logger.warning(
                f"TRUST_IDENTITY_HEADER is enabled: requests carrying "
                f"'{self.identity_header_name}' are trusted without verification."
            )

        logger.debug(f"Access token lifetime: {self.access_token_expire_minutes} min")

        return self


# Global settings instance
settings = Settings()
