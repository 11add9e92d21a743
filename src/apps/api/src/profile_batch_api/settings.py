"""API settings."""
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    sqlite_path: str = "/data/jobs.db"
    redis_url: str = "redis://redis:6379/0"
    queue_backend: str = "thread"  # "thread" or "rq"
    upload_dir: str = "/tmp/uploads"
    results_dir: str = "/data/results"
    max_upload_mb: int = 50
    profile_api_url: str = "http://profile-api:8080"
    profile_api_timeout: float = 30.0
    default_owner_id: int = 1
    default_batch_size: int = 50
    max_attempts: int = 3
    initial_backoff_seconds: float = 1.0
    item_delay_seconds: float = 2.0
    batch_delay_seconds: float = 5.0

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings."""
    return Settings()
