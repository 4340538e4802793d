"""
Application Configuration

Uses Pydantic Settings for environment variable management with validation.
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_ECHO: bool = False

    # Security (tokens are issued by the auth service, verified here)
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 43200  # 30 days

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:3001"

    # Mux video API
    MUX_API_BASE: str = "https://api.mux.com"
    MUX_TOKEN_ID: str = ""
    MUX_TOKEN_SECRET: str = ""
    MUX_REQUEST_TIMEOUT: float = 15.0  # seconds

    # Mux signed playback (base64-encoded RSA private key)
    MUX_SIGNING_KEY_ID: str = ""
    MUX_SIGNING_PRIVATE_KEY: str = ""
    PLAYBACK_TOKEN_TTL: int = 3600  # 1 hour

    # Mux webhook signature secret (verification skipped when empty)
    MUX_WEBHOOK_SECRET: str = ""
    MUX_WEBHOOK_TOLERANCE: int = 300  # seconds

    # S3-compatible storage for lesson attachments
    S3_ACCESS_KEY: str = ""
    S3_SECRET_KEY: str = ""
    S3_ENDPOINT: str = ""
    S3_BUCKET: str = ""
    S3_REGION: str = "auto"
    ATTACHMENT_URL_TTL: int = 6 * 3600  # 6 hours

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def mux_configured(self) -> bool:
        """Check if Mux API credentials are present."""
        return bool(self.MUX_TOKEN_ID and self.MUX_TOKEN_SECRET)

    @property
    def mux_signing_configured(self) -> bool:
        """Check if Mux signing key is present."""
        return bool(self.MUX_SIGNING_KEY_ID and self.MUX_SIGNING_PRIVATE_KEY)

    @property
    def storage_configured(self) -> bool:
        """Check if S3-compatible storage is configured."""
        return bool(
            self.S3_ACCESS_KEY and self.S3_SECRET_KEY and self.S3_ENDPOINT and self.S3_BUCKET
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are only loaded once.
    """
    return Settings()


# Global settings instance
settings = get_settings()
