"""
MangroveWatch - Configuration Management
Centralized configuration using pydantic-settings.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Database (key-value snapshot store)
    database_url: str = "sqlite:///./mangrovewatch.db"

    # Moderation
    # Hex SHA-256 digest of the moderator token. Moderation is disabled when unset.
    moderator_token_sha256: Optional[str] = None

    # Triage / reputation
    leaderboard_limit: int = 20
    repeat_promotion_rewards: bool = False

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
