from __future__ import annotations

"""Configuration module for the subscription reminder bot."""
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    bot_token: str = Field(..., validation_alias="BOT_TOKEN")
    database_path: Path = Field(default=Path("./data/subreminder.sqlite3"), validation_alias="DB_PATH")
    scheduler_timezone: str = Field(default="UTC", validation_alias="TZ")
    reminder_hour: int = Field(default=10, ge=0, le=23, validation_alias="REMINDER_HOUR")
    notification_prefix: str = Field(default="subreminder", min_length=1, validation_alias="NOTIFICATION_PREFIX")
    free_plan_limit: int = Field(default=1, ge=0, validation_alias="FREE_PLAN_LIMIT")
    reconcile_interval_minutes: int = Field(default=0, ge=0, validation_alias="RECONCILE_INTERVAL_MINUTES")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")


@lru_cache()
def load_settings() -> Settings:
    return Settings()
