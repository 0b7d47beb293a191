"""Configuration settings for the MyStep progress service."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MYSTEP_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Application
    app_name: str = "MyStep Learning Path API"
    debug: bool = False
    environment: str = "development"

    # Database
    # Tests override via MYSTEP_DB_URL
    db_url: str = "postgresql+asyncpg://localhost/mystep"
    db_pool_size: int = 10
    db_max_overflow: int = 20

    # Redis (active learning path pointer cache)
    redis_url: str = "redis://localhost:6379/0"
    active_path_cache_ttl: int = 3600  # seconds

    # Auth
    jwt_issuer: str = "mystep"
    jwt_audience: str = "mystep-api"
    jwt_algorithm: str = "RS256"
    jwt_public_key: Optional[str] = None

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Rate limiting, per client address
    rate_limit_requests: int = 100
    rate_limit_window: int = 15 * 60  # seconds

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Project defaults applied on assignment
    default_project_hours: int = 10


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
