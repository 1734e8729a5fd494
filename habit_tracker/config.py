"""Application configuration."""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_env: str = "development"
    database_url: str

    # Redis (for Celery)
    redis_url: str = "redis://localhost:6379/0"

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Entry imports
    import_max_file_size_bytes: int = 10 * 1024 * 1024
    import_checkpoint_interval: int = 100
    import_max_errors: int = 100

    # Entry import retention
    import_completed_retention_days: int = 7
    import_failed_retention_days: int = 30
    import_stuck_after_hours: int = 2
    import_cleanup_hour_utc: int = 3

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
