"""
Application settings (Pydantic Settings).
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env next to backend/ (parent of scenecast/)
_env_path = Path(__file__).resolve().parent.parent / ".env"


class Settings(BaseSettings):
    database_url: str = "sqlite:///./scenecast.db"
    # REDIS_URL in .env; empty means the in-process cache store
    redis_url: str = ""
    cache_key_prefix: str = "fsf:scene:"
    scheduler_timezone: str = "UTC"
    # Push retry backoff: min(base * 2^(attempt-1), max)
    retry_base_delay_ms: int = 1000
    retry_max_delay_ms: int = 10000
    log_level: str = "INFO"

    class Config:
        env_file = _env_path
        extra = "ignore"

    @field_validator("database_url", "redis_url", mode="after")
    @classmethod
    def strip_urls(cls, v: str) -> str:
        return (v or "").strip()


settings = Settings()
