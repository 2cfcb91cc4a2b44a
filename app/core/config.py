# app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - DATABASE_URL (Supabase Postgres connection string, or sqlite:// locally)
      - SUPABASE_JWT_SECRET (JWT signing secret of the identity provider)
      - RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET (payment gateway credentials)
      - REVIEW_TOKEN_SECRET (signs review invitation links)

    Optional:
      - SUPABASE_URL + SUPABASE_SERVICE_ROLE_KEY (invoice archival in Storage)
      - SMTP_* (outgoing email)
      - REDIS_URL / CELERY_* (catalog cache and notification worker)
    """

    PROJECT_NAME: str = "Modulo Storefront API"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"
    FRONTEND_URL: str = "http://localhost:3000"
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Database
    DATABASE_URL: str

    # JWT verification of identity provider tokens
    SUPABASE_JWT_SECRET: str
    SUPABASE_JWT_ALG: str = "HS256"

    # Supabase Storage (invoices). Archival is skipped when unset.
    SUPABASE_URL: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    INVOICE_BUCKET: str = "invoices"

    # Payment gateway
    RAZORPAY_KEY_ID: str
    RAZORPAY_KEY_SECRET: str
    RAZORPAY_API_URL: str = "https://api.razorpay.com/v1"
    GATEWAY_TIMEOUT_SECONDS: float = 10.0
    CURRENCY: str = "INR"
    EXPRESS_DELIVERY_FEE: float = 100.0

    # Review invitations sent when an order is delivered
    REVIEW_TOKEN_SECRET: str
    REVIEW_TOKEN_TTL_DAYS: int = 7

    # SMTP
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_FROM_EMAIL: str | None = None
    SMTP_FROM_NAME: str = "Modulo Interiors"
    SMTP_USE_TLS: bool = True
    SMTP_USE_SSL: bool = False
    SMTP_TIMEOUT_SECONDS: float = 30.0

    # Redis / Celery
    REDIS_URL: str = "redis://localhost:6379/0"
    CELERY_BROKER_URL: str | None = None
    CELERY_RESULT_BACKEND: str | None = None
    CELERY_TASK_ALWAYS_EAGER: bool = False

    # Catalog listing cache
    CATALOG_CACHE_TTL_SECONDS: int = 300

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
