"""Environment configuration management for the AURA forensic service."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
import logging


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Allow extra env vars without error
    )

    # Server configuration
    APP_NAME: str = "AURA Forensic Service"
    APP_VERSION: str = "3.1.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 10000

    # Artifact fetching
    FETCH_TIMEOUT_SECONDS: float = 30.0
    MAX_FILE_SIZE: int = 200 * 1024 * 1024  # 200MB
    TEMP_FILE_PREFIX: str = "aura_evidence_"

    # Case store
    STORE_BACKEND: str = "memory"  # memory | redis
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_NAMESPACE: str = "aura"

    # Signal panel overrides (YAML); defaults live in code
    SIGNAL_PANEL_FILE: Optional[str] = None

    # Intake protocol
    SUPPORTED_PROTOCOL_VERSION: str = "1.0.0"

    # CORS settings
    CORS_ORIGINS: list[str] = ["*"]
    CORS_CREDENTIALS: bool = False
    CORS_METHODS: list[str] = ["GET", "POST", "OPTIONS"]
    CORS_HEADERS: list[str] = ["Content-Type"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# Global settings instance
settings = Settings()


def get_cors_config() -> dict:
    """Get CORS configuration."""
    return {
        "allow_origins": settings.CORS_ORIGINS,
        "allow_credentials": settings.CORS_CREDENTIALS,
        "allow_methods": settings.CORS_METHODS,
        "allow_headers": settings.CORS_HEADERS,
    }


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the configured log level and format to the root logger."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=settings.LOG_FORMAT,
    )
