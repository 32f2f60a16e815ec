"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Bookkeeping"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # API
    api_prefix: str = "/api"
    pagination_limit: int = 100  # Default page size for lists
    pagination_max_limit: int = 1000

    # Database
    database_url: str = "sqlite:///./bookkeeping.db"

    # Session tokens
    jwt_secret: str = "change-me-in-production"
    jwt_issuer: str = "o2-ui"
    jwt_algorithm: str = "HS256"
    jwt_expiration_minutes: int = 60 * 24

    # OpenID (login flow is handled by the gateway, only read here)
    openid_id: str | None = None
    openid_secret: str | None = None
    openid_redirect_uri: str | None = None
    openid_well_known: str | None = None

    # Kafka (consumed by external synchronisers)
    kafka_brokers: str | None = None

    # Attachments
    attachments_path: str = "./attachments"

    # Quality control
    non_qc_detectors: list[str] = ["TST"]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
