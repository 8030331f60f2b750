# pranveda/core/config.py
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - DATABASE_URL (Supabase Postgres connection string)

    Vendor adapters (each one is optional; routes that need a missing
    adapter answer 503):
      - FIREBASE_PROJECT_ID / FIREBASE_CREDENTIALS_FILE (identity provider)
      - FIREBASE_WEB_API_KEY (password re-confirmation)
      - GEMINI_API_KEY (AI routes)
      - SUPABASE_URL / SUPABASE_KEY (audio asset URLs)
    """

    PROJECT_NAME: str = "PranVeda Wellness API"
    API_V1_STR: str = "/api/v1"
    VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Supabase / DB config
    DATABASE_URL: str
    SUPABASE_URL: str | None = None
    SUPABASE_KEY: str | None = None
    # Service role key bypasses RLS (backend only)
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    AUDIO_BUCKET: str = "audio"

    # Firebase Auth
    FIREBASE_PROJECT_ID: str | None = None
    FIREBASE_CREDENTIALS_FILE: str | None = None
    FIREBASE_WEB_API_KEY: str | None = None

    # Gemini
    GEMINI_API_KEY: str | None = None
    GEMINI_MODEL: str = "gemini-2.5-flash"

    # Frontend / CORS
    FRONTEND_URL: str = "http://localhost:5173"
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # Rate limiting (general policy; named policies live in core/rate_limit.py)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_WINDOW_SECONDS: int = 900
    RATE_LIMIT_MAX_REQUESTS: int = 100
    # Shared counter store for all workers; unset disables limiting
    REDIS_URL: str | None = None

    PASSWORD_RESET_TTL_MINUTES: int = 60

    # Outgoing mail (password reset links); unset SMTP_HOST disables delivery
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_FROM_EMAIL: str | None = None
    SMTP_FROM_NAME: str = "PranVeda"
    SMTP_USE_TLS: bool = True
    SMTP_USE_SSL: bool = False

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
