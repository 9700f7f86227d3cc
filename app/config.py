"""
TrackMyStartup - Configuration Settings

This module handles all application configuration using Pydantic Settings.
Environment variables are loaded from .env file.
"""

from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ===========================================
    # APPLICATION CONFIGURATION
    # ===========================================
    app_name: str = "TrackMyStartup"
    app_env: str = "development"
    debug: bool = False
    secret_key: str  # Required - must be set in .env
    api_version: str = "v1"
    base_url: str = "http://localhost:5120"  # Base URL for reset links

    # ===========================================
    # DATABASE CONFIGURATION
    # ===========================================
    database_url_async: str = "sqlite+aiosqlite:///./trackmystartup.db"

    # ===========================================
    # JWT AUTHENTICATION
    # ===========================================
    jwt_secret_key: str  # Required - must be set in .env
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    refresh_token_expire_days: int = 7
    password_reset_expire_minutes: int = 60
    reset_grant_expire_minutes: int = 10

    # Login requests that stall longer than this are abandoned
    login_timeout_seconds: float = 30.0

    # ===========================================
    # REDIS CONFIGURATION
    # ===========================================
    redis_url: str = "redis://localhost:6379/0"

    # ===========================================
    # FILE STORAGE
    # ===========================================
    storage_local_path: str = "./uploads"
    max_upload_size_mb: int = 10

    # ===========================================
    # EMAIL CONFIGURATION
    # ===========================================
    mail_server: str = ""
    mail_port: int = 587
    mail_use_tls: bool = True
    mail_username: str = ""
    mail_password: str = ""
    mail_from: str = ""
    mail_from_name: str = "TrackMyStartup"

    @property
    def email_from(self) -> str:
        """Email from address."""
        return self.mail_from or self.mail_username or "noreply@trackmystartup.com"

    # ===========================================
    # DISPLAY
    # ===========================================
    default_currency: str = "USD"

    # ===========================================
    # CORS SETTINGS
    # ===========================================
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://localhost:5120"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env.lower() == "development"

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid reading .env file on every call.
    """
    return Settings()


# Export settings instance
settings = get_settings()
