"""Configuration management for Command Tracker."""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="COMMAND_TRACKER_",
        env_file=".env" if os.getenv("COMMAND_TRACKER_ENVIRONMENT") != "test" else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Command Tracker"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Storage
    installation_id: str = Field(
        default="default",
        description="Per-host installation identifier; names the storage file",
    )
    data_dir: Path = Field(default=Path(".command_tracker"))

    # Retention
    max_records: int = Field(default=2000, ge=1)
    retention_days: int = Field(default=60, ge=1)

    # Feature Flags
    enable_metrics: bool = False

    @field_validator("installation_id", mode="before")
    @classmethod
    def validate_installation_id(cls, v):
        value = str(v or "").strip()
        if not value:
            raise ValueError("installation_id must not be empty")
        if "/" in value or "\\" in value:
            raise ValueError("installation_id must not contain path separators")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        return str(v).upper()


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
