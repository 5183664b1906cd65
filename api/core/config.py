"""
Configuration helpers for the Inutile Cards backend.

Exposes a frozen Settings object read from environment variables so that
routers/services never fetch os.environ directly.
"""

from dataclasses import dataclass
from functools import lru_cache
import os

DEV_JWT_SECRET = "dev-secret-change-in-production"


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    host: str
    port: int
    database_url: str
    jwt_secret: str
    jwt_expires_seconds: int
    frontend_url: str
    smtp_host: str
    smtp_port: int
    smtp_user: str
    smtp_password: str
    email_from: str
    password_reset_ttl: int
    low_stock_threshold: int
    log_level: str

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"

    @property
    def uses_dev_secret(self) -> bool:
        return self.jwt_secret == DEV_JWT_SECRET


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    app_env = (os.getenv("APP_ENV") or "dev").lower()
    return Settings(
        app_env=app_env,
        host=os.getenv("HOST", "0.0.0.0"),
        port=_int(os.getenv("PORT", "8080"), 8080),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./inutile.db"),
        jwt_secret=os.getenv("JWT_SECRET") or DEV_JWT_SECRET,
        jwt_expires_seconds=_int(os.getenv("JWT_EXPIRES_SECONDS", "604800"), 604800),
        frontend_url=os.getenv("FRONTEND_URL", "http://localhost:3000").rstrip("/"),
        smtp_host=os.getenv("SMTP_HOST", ""),
        smtp_port=_int(os.getenv("SMTP_PORT", "587"), 587),
        smtp_user=os.getenv("SMTP_USER", ""),
        smtp_password=os.getenv("SMTP_PASSWORD", ""),
        email_from=os.getenv("EMAIL_FROM", "noreply@inutile.cards"),
        password_reset_ttl=_int(os.getenv("PASSWORD_RESET_TTL", "3600"), 3600),
        low_stock_threshold=_int(os.getenv("LOW_STOCK_THRESHOLD", "20"), 20),
        log_level=(os.getenv("LOG_LEVEL") or ("INFO" if app_env != "prod" else "WARNING")).upper(),
    )
