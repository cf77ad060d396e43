"""
topkeval Configuration Module

Centralized configuration using Pydantic Settings for type-safe environment management.
Evaluation options default from here unless a caller passes them explicitly.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Ranking Configuration
    # ==========================================================================
    top_k: int = Field(default=100, description="Position to cut the ranked list off at")
    ignore_train: bool = Field(
        default=False,
        description="Reserved: exclude training items from the ranked list",
    )

    @field_validator("top_k")
    @classmethod
    def check_top_k(cls, v: int) -> int:
        if v < 1:
            raise ValueError("top_k must be at least 1")
        return v

    # ==========================================================================
    # Offline Evaluation Configuration
    # ==========================================================================
    thread_num: int = Field(default=1, description="Worker threads for leave-one-out evaluation")

    @field_validator("thread_num")
    @classmethod
    def check_thread_num(cls, v: int) -> int:
        if v < 1:
            raise ValueError("thread_num must be at least 1")
        return v

    # ==========================================================================
    # Online Evaluation Configuration
    # ==========================================================================
    interval: int = Field(default=100, description="Print running averages every N instances (0 disables)")
    max_iter_online: int = Field(default=1, description="Reserved: update passes per online observation")
    breakdown_intervals: int = Field(
        default=10,
        description="Largest bucket of the per-history-size breakdown",
    )

    @field_validator("interval", "breakdown_intervals")
    @classmethod
    def check_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must be non-negative")
        return v

    # ==========================================================================
    # Data Configuration
    # ==========================================================================
    data_path: Path = Field(default=Path("data/"), description="Path to data files")

    @field_validator("data_path", mode="before")
    @classmethod
    def ensure_data_path(cls, v: str | Path) -> Path:
        return Path(v)

    # ==========================================================================
    # Logging Configuration
    # ==========================================================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log output format"
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
