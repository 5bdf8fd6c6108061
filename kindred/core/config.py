from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from kindred.core.version import __version__


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    PORT: int = 5001
    APP_ENV: Literal["development", "production", "staging"] = "production"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    REDIS_URL: str = "redis://localhost:6379/0"
    # Maximum number of connections Redis client will open per process
    REDIS_MAX_CONNECTIONS: int = 20
    REDIS_KEY_PREFIX: str = "kindred:"
    # How many times a read-modify-write is replayed after a version conflict
    STORE_MAX_RETRIES: int = 5

    MAX_MATCHES: int = 4

    TOKEN_SECRET: str = "change-me"
    TOKEN_TTL_SECONDS: int = 7 * 24 * 60 * 60
    PASSWORD_HASH_ITERATIONS: int = 200_000
    PASSWORD_RESET_TTL_SECONDS: int = 15 * 60
    MAX_LOGIN_ATTEMPTS: int = 5
    LOGIN_LOCK_SECONDS: int = 2 * 60 * 60

    # Transactional email (SendGrid v3 compatible)
    MAIL_API_URL: str = "https://api.sendgrid.com/v3"
    MAIL_API_KEY: str | None = None
    MAIL_FROM: str = "noreply@yourdomain.com"
    FRONTEND_URL: str = "http://localhost:3000"


settings = Settings()

APP_VERSION = __version__
