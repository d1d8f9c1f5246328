"""
Application configuration using pydantic-settings.
Loads from environment variables with .env file support.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Access gateway
    cache_ttl_seconds: float = 300.0  # 5 minutes

    # Change notification (oldest entries are dropped past these sizes)
    event_history_limit: int = 10_000
    listener_fault_limit: int = 1_000

    # Closure rule
    passing_score: float = 70.0
    closure_ratio: float = 0.5
    closure_min_evaluations: int = 2

    # Partner system adapter
    partner_exchange_rate: float = 4000.0  # local currency per USD
    partner_title_max_length: int = 100

    # Application
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR

    # Startup data
    seed_demo_data: bool = False

    # API Settings
    api_v1_prefix: str = "/api/v1"
    project_name: str = "Research Project Registry"
    version: str = "1.0.0"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
