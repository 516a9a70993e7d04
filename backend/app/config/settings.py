"""
Application Configuration

This module provides type-safe configuration loading using Pydantic settings.
Environment variables are loaded from .env file and validated.

Usage:
    from app.config import settings

    # Access settings
    db_url = settings.DATABASE_URL
    intervals = settings.REVIEW_INTERVAL_DAYS
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Fixit"
    DEBUG: bool = False
    CORS_ORIGINS: list[str] = ["*"]

    # PostgreSQL
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "fixit"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "fixit"

    # Full SQLAlchemy URL; overrides the POSTGRES_* settings when set
    DATABASE_URL_OVERRIDE: str = ""

    @property
    def POSTGRES_URL(self) -> str:
        """Async PostgreSQL connection URL."""
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def DATABASE_URL(self) -> str:
        """Connection URL used by the application engine."""
        return self.DATABASE_URL_OVERRIDE or self.POSTGRES_URL

    # Review scheduling
    # Days until next review, indexed by mastery level (0 = unlearned, 5 = expert)
    REVIEW_INTERVAL_DAYS: list[int] = [0, 1, 3, 7, 14, 30]
    MAX_MASTERY_LEVEL: int = 5
    FORGOTTEN_DELAY_DAYS: int = 1

    # Practice sessions
    PRACTICE_DEFAULT_LIMIT: int = 20
    PENDING_DEFAULT_LIMIT: int = 10

    # History & statistics
    HISTORY_DEFAULT_PAGE_SIZE: int = 20
    HEATMAP_DAYS: int = 365
    HEATMAP_COUNT_PER_LEVEL: int = 3
    HEATMAP_MAX_INTENSITY: int = 4

    # Questions
    SUBJECT_SUGGESTION_LIMIT: int = 20
    EXPORT_FORMAT_VERSION: str = "1.0"

    # Tags
    DEFAULT_TAG_CATEGORY: str = "custom"
    DEFAULT_TAG_COLOR: str = "#1890ff"

    # Scheduled jobs
    SCHEDULER_ENABLED: bool = True
    TAG_CLEANUP_HOUR: int = 3  # UTC

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()


@lru_cache()
def load_yaml_config() -> dict[str, Any]:
    """Load application configuration from config/default.yaml."""
    config_path = Path(__file__).parent.parent.parent.parent / "config" / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


yaml_config: dict[str, Any] = load_yaml_config()
