"""Configuration settings for Cloud Locker."""

import os
import secrets
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


def _get_bool_env(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y"}


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self) -> None:
        # Database
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./cloud_locker.db")

        # JWT
        self.JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "")
        self.JWT_SECRET_GENERATED: bool = not self.JWT_SECRET_KEY
        if self.JWT_SECRET_GENERATED:
            self.JWT_SECRET_KEY = secrets.token_urlsafe(32)
        self.JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
        self.JWT_EXPIRE_MINUTES: int = int(os.getenv("JWT_EXPIRE_MINUTES", "60"))

        # Authentication: "token" (stateless JWT) or "session" (server-side store)
        self.AUTH_STRATEGY: str = os.getenv("AUTH_STRATEGY", "token").lower()
        self.SESSION_EXPIRE_MINUTES: int = int(os.getenv("SESSION_EXPIRE_MINUTES", "60"))
        self.MIN_PASSWORD_LENGTH: int = int(os.getenv("MIN_PASSWORD_LENGTH", "6"))

        # Password reset
        self.RESET_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("RESET_TOKEN_EXPIRE_MINUTES", "15"))
        self.EXPOSE_RESET_TOKEN: bool = _get_bool_env("EXPOSE_RESET_TOKEN")

        # Storage: "local" or "supabase"
        self.STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "local").lower()
        self.UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "uploads")
        self.MAX_UPLOAD_SIZE_MB: int = int(os.getenv("MAX_UPLOAD_SIZE_MB", "25"))
        self.SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
        self.SUPABASE_SERVICE_ROLE_KEY: str = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
        self.SUPABASE_BUCKET: str = os.getenv("SUPABASE_BUCKET", "cloud-locker")

        # Mail: "log" or "smtp"
        self.MAIL_BACKEND: str = os.getenv("MAIL_BACKEND", "log").lower()
        self.SMTP_HOST: str = os.getenv("SMTP_HOST", "")
        self.SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
        self.SMTP_USERNAME: str = os.getenv("SMTP_USERNAME", "")
        self.SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
        self.SMTP_FROM_EMAIL: str = os.getenv("SMTP_FROM_EMAIL", self.SMTP_USERNAME)
        self.SMTP_USE_TLS: bool = _get_bool_env("SMTP_USE_TLS", default=True)
        self.SMTP_USE_SSL: bool = _get_bool_env("SMTP_USE_SSL")

        # Application
        self.APP_ENV: str = os.getenv("APP_ENV", "development")
        self.DEBUG: bool = _get_bool_env("DEBUG")

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    def validate(self) -> list[str]:
        """Validate settings and return list of warnings."""
        errors = []
        if self.JWT_SECRET_GENERATED:
            errors.append("JWT_SECRET_KEY is not set - using auto-generated key (not persistent across restarts)")
        if self.AUTH_STRATEGY not in ("token", "session"):
            errors.append(f"Unknown AUTH_STRATEGY '{self.AUTH_STRATEGY}' - falling back to 'token'")
        if self.STORAGE_BACKEND == "supabase" and not (self.SUPABASE_URL and self.SUPABASE_SERVICE_ROLE_KEY):
            errors.append("STORAGE_BACKEND is 'supabase' but SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY is missing")
        if self.MAIL_BACKEND == "smtp" and not self.SMTP_HOST:
            errors.append("MAIL_BACKEND is 'smtp' but SMTP_HOST is not set - emails will fail to send")
        if self.EXPOSE_RESET_TOKEN and self.is_production:
            errors.append("EXPOSE_RESET_TOKEN is enabled in production - reset tokens are returned to callers")
        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
