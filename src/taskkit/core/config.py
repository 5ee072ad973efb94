"""Runtime settings loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TaskkitSettings(BaseSettings):
    """Service settings, read from TASKKIT_* environment variables or a .env file."""

    database_url: str = "sqlite+aiosqlite:///:memory:"
    host: str = "127.0.0.1"
    port: int = Field(default=8080, ge=1, le=65535)
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    execution_timeout: float = Field(default=60.0, gt=0)
    max_output_chars: int = Field(default=100_000, ge=1)
    max_concurrent_executions: int = Field(default=4, ge=1)
    store_max_retries: int = Field(default=2, ge=0)
    store_retry_backoff: float = Field(default=0.1, ge=0.0)

    model_config = SettingsConfigDict(
        env_prefix="TASKKIT_",
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )


@lru_cache(maxsize=1)
def get_settings() -> TaskkitSettings:
    return TaskkitSettings()
