"""
Process-level settings for the stats engine, read from the environment and .env.

Engine tuning lives in config/defaults.yaml; the fields here override it.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Environment-backed settings (DATABASE_URL, TIMEZONE, LOG_LEVEL, ...)."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/habit_streaks.db"

    # Environment
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # "Today" is evaluated in this timezone, not the host's
    timezone: str = "America/Sao_Paulo"

    # Optimistic stats writes
    stats_write_max_attempts: int = 3
    stats_write_base_delay: float = 0.05

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
