"""
Application Settings for ChatDesk

Centralized configuration using Pydantic Settings with .env support.
All environment variables are validated at startup.
"""

from functools import lru_cache
from typing import Optional
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Upstream tokens (WhatsiPlus, Gemini) are NOT configured here: they live
    in the database and are edited at runtime from the admin dashboard.
    This module only covers process-level knobs.
    """

    # Application Settings
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # CORS Configuration
    frontend_url: str = "http://localhost:5173"
    allowed_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    # Admin API key for /api/admin routes
    admin_api_key: Optional[str] = None

    # Database Configuration (SQLModel/SQLAlchemy)
    database_url: Optional[str] = None
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_pool_timeout: int = 30
    database_echo: bool = False

    # WhatsiPlus Upstream
    whatsapp_api_base_url: str = "https://api.whatsiplus.com"
    whatsapp_fetch_timeout_seconds: float = 10.0
    whatsapp_send_timeout_seconds: float = 10.0

    # Ingestion Loop
    ingestion_enabled: bool = True
    poll_interval_seconds: float = 5.0
    # Poll the global token even when level-1 tenants have personal tokens
    poll_global_with_personal_tokens: bool = True

    # Auto-Registration
    default_country_code: str = "98"
    trial_days: int = 7

    # Generative Replies
    gemini_model: str = "gemini-2.0-flash"
    reply_language: str = "Persian"
    reply_word_budget: int = 20
    reply_max_length: int = 200
    default_ai_name: str = "من هوش مصنوعی هستم"

    # Subscription Job
    subscription_job_enabled: bool = True
    subscription_job_interval_seconds: float = 86400.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_intervals(self) -> "Settings":
        """Reject values that would turn the schedulers into busy loops."""
        if self.poll_interval_seconds <= 0:
            raise ValueError("POLL_INTERVAL_SECONDS must be positive")
        if self.subscription_job_interval_seconds <= 0:
            raise ValueError("SUBSCRIPTION_JOB_INTERVAL_SECONDS must be positive")
        if self.reply_max_length < 1:
            raise ValueError("REPLY_MAX_LENGTH must be at least 1")

        self.default_country_code = self.default_country_code.lstrip("+")
        if not self.default_country_code.isdigit():
            raise ValueError("DEFAULT_COUNTRY_CODE must contain digits only")

        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience export for direct import
settings = get_settings()
