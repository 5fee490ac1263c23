"""
TeleGallery configuration: all environment variables in one place.

Read from environment at runtime. Never hardcode secrets.
"""

from __future__ import annotations

import os


def _int_env(name: str, default: int) -> int:
    value = os.environ.get(name, "")
    return int(value) if value else default


class Settings:
    """Application settings from environment variables."""

    # Database (Supabase Postgres)
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "")

    # Auth. Supabase access tokens are HS256 JWTs signed with the project secret
    SUPABASE_JWT_SECRET: str = os.environ.get("SUPABASE_JWT_SECRET", "")
    SUPABASE_JWT_AUDIENCE: str = os.environ.get("SUPABASE_JWT_AUDIENCE", "authenticated")
    JWT_ALGORITHM: str = "HS256"

    # Telegram
    TELEGRAM_BOT_TOKEN: str = os.environ.get("TELEGRAM_BOT_TOKEN", "")
    TELEGRAM_BOT_USERNAME: str = os.environ.get("TELEGRAM_BOT_USERNAME", "")
    TELEGRAM_API_BASE: str = os.environ.get("TELEGRAM_API_BASE", "https://api.telegram.org")
    # "polling" (getUpdates loop), "webhook" (POST /telegram/webhook) or "off"
    TELEGRAM_UPDATE_MODE: str = os.environ.get("TELEGRAM_UPDATE_MODE", "polling")
    TELEGRAM_WEBHOOK_URL: str = os.environ.get("TELEGRAM_WEBHOOK_URL", "")
    TELEGRAM_WEBHOOK_SECRET: str = os.environ.get("TELEGRAM_WEBHOOK_SECRET", "")
    TELEGRAM_LOGIN_MAX_AGE_SECONDS: int = _int_env("TELEGRAM_LOGIN_MAX_AGE_SECONDS", 86400)

    # Linking codes
    LINK_CODE_TTL_SECONDS: int = _int_env("LINK_CODE_TTL_SECONDS", 600)
    LINK_PERSIST_TIMEOUT_SECONDS: int = _int_env("LINK_PERSIST_TIMEOUT_SECONDS", 10)
    LINK_SWEEP_INTERVAL_SECONDS: int = 60

    # Uploads. Bot API caps sendDocument at 50 MB
    MAX_UPLOAD_BYTES: int = _int_env("MAX_UPLOAD_BYTES", 50 * 1024 * 1024)

    # Rate Limits
    BOT_MESSAGES_PER_HOUR: int = 60  # per chat

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    @property
    def WEB_APP_URL(self) -> str:
        url = os.environ.get("WEB_APP_URL")
        if url:
            return url.rstrip("/")
        return "http://localhost:5173" if self.ENVIRONMENT == "development" else "https://telegallery.app"

    @property
    def CORS_ORIGINS(self) -> list[str]:
        raw = os.environ.get("CORS_ORIGINS", "")
        if raw:
            return [origin.strip() for origin in raw.split(",") if origin.strip()]
        return [self.WEB_APP_URL]


# Singleton instance
settings = Settings()

# Validate required settings (skip in test mode)
_testing = os.environ.get("TESTING", "").lower() == "true"

if not _testing:
    if not settings.DATABASE_URL:
        raise RuntimeError("DATABASE_URL environment variable is required")
    if not settings.SUPABASE_JWT_SECRET:
        raise RuntimeError("SUPABASE_JWT_SECRET environment variable is required")
    if not settings.TELEGRAM_BOT_TOKEN:
        raise RuntimeError("TELEGRAM_BOT_TOKEN environment variable is required")
    if settings.TELEGRAM_UPDATE_MODE not in ("polling", "webhook", "off"):
        raise RuntimeError("TELEGRAM_UPDATE_MODE must be one of: polling, webhook, off")
