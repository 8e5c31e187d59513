"""
Runtime settings for the payments engine.

Values come from environment variables (or a local ``.env`` file):

    PAYMENTS_LOG_LEVEL  logging level name written to stderr, default WARNING
    PAYMENTS_WORKERS    number of per-client worker threads, default 1
"""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    log_level: str = Field("WARNING", alias="PAYMENTS_LOG_LEVEL")
    workers: int = Field(1, alias="PAYMENTS_WORKERS", ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached Settings so the environment is parsed once per process."""
    return Settings()


__all__ = ["Settings", "get_settings"]
