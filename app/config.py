# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
#
# Provider credentials (Twilio, Telegram, Gemini) are optional at startup.
# Handlers that need a missing credential fail with MissingConfigurationError.
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are accessed via the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------
    # These are required - app won't start without them

    SUPABASE_URL: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_ANON_KEY: str = Field(
        ...,
        description="Supabase anon/public API key"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_JWT_SECRET: str = Field(
        default="",
        description="Legacy HS256 JWT secret for verifying user tokens"
    )

    # -------------------------------------------------------------------------
    # Redis Configuration (for Celery and WebSocket fan-out)
    # -------------------------------------------------------------------------

    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for Celery broker and pub/sub"
    )

    # -------------------------------------------------------------------------
    # Generative AI (Gemini through its OpenAI-compatible endpoint)
    # -------------------------------------------------------------------------

    GEMINI_API_KEY: str | None = Field(
        default=None,
        description="Google Gemini API key"
    )

    GEMINI_MODEL: str = Field(
        default="gemini-3-flash-preview",
        description="Model used for proactive messages and identity updates"
    )

    GEMINI_BASE_URL: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/openai/",
        description="OpenAI-compatible base URL for Gemini"
    )

    # -------------------------------------------------------------------------
    # Messaging Providers
    # -------------------------------------------------------------------------

    TWILIO_ACCOUNT_SID: str | None = Field(default=None, description="Twilio account SID")
    TWILIO_AUTH_TOKEN: str | None = Field(default=None, description="Twilio auth token")
    TWILIO_PHONE_NUMBER: str | None = Field(default=None, description="Twilio sender number")

    TELEGRAM_BOT_TOKEN: str | None = Field(default=None, description="Telegram bot token")

    # -------------------------------------------------------------------------
    # Team Agent
    # -------------------------------------------------------------------------

    N8N_WEBHOOK_URL: str = Field(
        default="",
        description="Team agent webhook used by scheduled tasks (empty disables execution)"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    APP_URL: str = Field(
        default="https://airocket.app",
        description="Public web app URL, used for redirects"
    )

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging)"
    )

    HTTP_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for outbound HTTP calls to providers"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:5173",
        description="Allowed CORS origins (comma-separated)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:5173, https://airocket.app" -> ["http://localhost:5173", "https://airocket.app"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def functions_url(self) -> str:
        """Base URL for remote Supabase edge functions."""
        return f"{self.SUPABASE_URL.rstrip('/')}/functions/v1"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
