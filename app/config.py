# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# Every service reads its configuration from `settings`, loaded once from
# the environment (and .env in development) by pydantic-settings.
#
# Required: SUPABASE_URL, SUPABASE_ANON_KEY, SUPABASE_SERVICE_KEY.
# Optional integrations fall back to a local mode when unset:
#   RESEND_API_KEY     emails are written to the log instead of sent
#   STRIPE_SECRET_KEY  checkout requests fail with 502 CHECKOUT_FAILED
#   AWS_* keys         boto3 uses its default credential chain
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """StillColab API and worker settings."""

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------

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
        description="Legacy HS256 secret used to verify Supabase access tokens"
    )

    # -------------------------------------------------------------------------
    # Redis Configuration (for Celery and the change feed)
    # -------------------------------------------------------------------------

    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for Celery broker and pub/sub"
    )

    # -------------------------------------------------------------------------
    # Object Storage (S3)
    # -------------------------------------------------------------------------

    S3_BUCKET: str = Field(
        default="stillcolab-images",
        description="Bucket holding uploaded images"
    )

    S3_REGION: str = Field(
        default="us-east-1",
        description="AWS region of the bucket"
    )

    AWS_ACCESS_KEY_ID: str | None = Field(
        default=None,
        description="Access key (falls back to the default AWS credential chain)"
    )

    AWS_SECRET_ACCESS_KEY: str | None = Field(
        default=None,
        description="Secret key paired with AWS_ACCESS_KEY_ID"
    )

    UPLOAD_URL_EXPIRES_SECONDS: int = Field(
        default=60,
        ge=1,
        le=604800,
        description="Lifetime of pre-signed PUT URLs"
    )

    DOWNLOAD_URL_EXPIRES_SECONDS: int = Field(
        default=3600,
        ge=1,
        le=604800,
        description="Lifetime of pre-signed GET URLs"
    )

    # -------------------------------------------------------------------------
    # Quotas & Limits
    # -------------------------------------------------------------------------

    DEFAULT_STORAGE_LIMIT_BYTES: int = Field(
        default=1_000_000_000,
        ge=0,
        description="Storage limit applied when a user has no plan (1 GB)"
    )

    MAX_METADATA_BODY_BYTES: int = Field(
        default=10_000,
        ge=1,
        description="Largest accepted save-metadata request body"
    )

    CACHE_TTL_SECONDS: int = Field(
        default=300,
        ge=1,
        description="Lifetime of in-process profile cache entries"
    )

    # -------------------------------------------------------------------------
    # Email (Resend)
    # -------------------------------------------------------------------------

    RESEND_API_KEY: str | None = Field(
        default=None,
        description="Resend API key; emails are only logged when unset"
    )

    NOTIFICATION_FROM_EMAIL: str = Field(
        default="StillColab <notifications@stillcolab.com>",
        description="Sender for activity notifications"
    )

    SHARE_FROM_EMAIL: str = Field(
        default="StillColab <noreply@stillcolab.com>",
        description="Sender for share invitations"
    )

    FRONTEND_URL: str = Field(
        default="http://localhost:5173",
        description="Base URL of the web client, used in email links"
    )

    # -------------------------------------------------------------------------
    # Billing (Stripe)
    # -------------------------------------------------------------------------

    STRIPE_SECRET_KEY: str | None = Field(
        default=None,
        description="Stripe secret key used to create checkout sessions"
    )

    STRIPE_API_BASE: str = Field(
        default="https://api.stripe.com/v1",
        description="Stripe REST API base URL"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="DEBUG-level logging in the API and workers"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    CORS_ORIGINS: str = Field(
        default="http://localhost:5173",
        description="Allowed CORS origins (comma-separated)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------

    @field_validator("SUPABASE_URL", "FRONTEND_URL", "STRIPE_API_BASE")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("RESEND_API_KEY", "STRIPE_SECRET_KEY", "AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY")
    @classmethod
    def blank_as_unset(cls, value: str | None) -> str | None:
        return value or None

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """CORS_ORIGINS split on commas."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
