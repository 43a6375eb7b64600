"""Configuration management using Pydantic Settings."""
from functools import lru_cache
from pydantic import Field
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
    app_name: str = "Peer Rounds"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database
    database_url: str = "sqlite:///./peer_rounds.db"

    # Redis
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0

    # Cache TTLs (seconds)
    cache_ttl_round: int = 3600  # completed rounds only

    # Round engine
    round_lookahead_days: int = Field(default=7, ge=0)
    neutral_score: float = Field(default=3.0, ge=0, le=10)

    # Email (SMTP); when disabled, notifications are only logged
    email_enabled: bool = False
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: str = Field(default="", validation_alias="EMAIL_USER")
    smtp_password: str = Field(default="", validation_alias="EMAIL_PASS")
    smtp_use_tls: bool = True
    smtp_timeout: int = Field(default=5, ge=1)  # seconds per connection
    notification_workers: int = Field(default=4, ge=1)
    email_from: str = "rounds@localhost"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
