"""
Application Settings.

Centralized configuration using Pydantic Settings with environment variable loading.
All settings are validated at startup - missing required values will raise an error.

Production Mode:
    When app_env="production", additional validations apply:
    - debug must be False
    - cors_allowed_origins cannot be ["*"]
    - dashboard_secret_key must be set
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Supabase (Sale Ledger)
    # -------------------------------------------------------------------------
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_key: SecretStr = Field(..., description="Supabase service role key")
    sales_table: str = Field(
        default="sales",
        description="Table holding one record per processed order",
    )

    # -------------------------------------------------------------------------
    # Groq (Audit Report LLM)
    # -------------------------------------------------------------------------
    groq_api_key: SecretStr | None = Field(
        default=None,
        description="Bearer token for the chat completions API. Unset means fallback reports only.",
    )
    llm_api_url: str = Field(
        default="https://api.groq.com/openai/v1/chat/completions",
        description="OpenAI-compatible chat completions endpoint",
    )
    llm_model: str = Field(
        default="llama-3.3-70b-versatile",
        description="Model used for audit generation",
    )
    llm_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    llm_max_tokens: int = Field(default=2500, ge=1)
    llm_timeout_seconds: float = Field(
        default=60.0,
        description="Connect/read timeout for the single generation attempt",
    )

    # -------------------------------------------------------------------------
    # SendGrid (Email Delivery)
    # -------------------------------------------------------------------------
    sendgrid_api_key: SecretStr | None = Field(
        default=None, description="SendGrid API key for audit emails"
    )
    from_email: str = Field(
        default="audits@example.com",
        description="Sender email address for outgoing emails",
    )
    from_name: str = Field(
        default="Sale Audit",
        description="Sender display name, also used as the brand in subjects",
    )
    reply_to_email: str | None = Field(
        default=None,
        description="Reply-to email address",
    )

    # -------------------------------------------------------------------------
    # Dashboard
    # -------------------------------------------------------------------------
    dashboard_secret_key: SecretStr | None = Field(
        default=None,
        description="Pre-shared key required by the dashboard endpoint",
    )
    dashboard_timezone: str = Field(
        default="Africa/Johannesburg",
        description="IANA timezone used to render sale timestamps",
    )
    dashboard_default_limit: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Number of recent sales aggregated when no limit is given",
    )

    # -------------------------------------------------------------------------
    # Sales
    # -------------------------------------------------------------------------
    default_currency: str = Field(
        default="ZAR",
        min_length=3,
        max_length=3,
        description="Currency recorded when the notification carries none",
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # -------------------------------------------------------------------------
    # CORS Settings
    # -------------------------------------------------------------------------
    cors_allowed_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins. Use ['*'] for development only.",
    )
    cors_allow_credentials: bool = Field(
        default=True,
        description="Allow credentials in CORS requests",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate that production settings are secure."""
        if self.app_env == "production":
            errors = []

            if self.debug:
                errors.append("debug must be False in production")

            if "*" in self.cors_allowed_origins:
                errors.append("cors_allowed_origins cannot contain '*' in production")

            if not self.dashboard_secret_key:
                errors.append("dashboard_secret_key must be set in production")

            if errors:
                raise ValueError(
                    f"Production configuration errors: {'; '.join(errors)}"
                )

        return self


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload settings if needed.
    """
    return Settings()
