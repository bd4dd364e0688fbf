"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./scheme_tracker.db"

    # Service
    service_name: str = "scheme-tracker"
    log_level: str = "INFO"

    # Schemes
    default_duration_months: int = 12
    auto_archive_grace_days: int = 60  # Closed schemes move to the archive after this many days


settings = Settings()
