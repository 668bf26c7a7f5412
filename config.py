# config.py
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables
load_dotenv()

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:3001",
    "http://localhost:3002",
    "http://localhost:3003",
    "http://localhost:5173",
    "http://localhost:5174",
]


class TokenSettings(BaseModel):
    """Signing material for the token service.

    Access and refresh tokens must use different secrets so a leaked access
    token can never be redeemed as a refresh token.
    """
    access_secret: str
    refresh_secret: str
    algorithm: str = "HS256"
    access_ttl_minutes: int = 60
    refresh_ttl_days: int = 30


class MailSettings(BaseModel):
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    user: Optional[str] = None
    password: Optional[str] = None
    admin_email: Optional[str] = None
    sender_name: str = "Storefront"

    @property
    def enabled(self) -> bool:
        return bool(self.user and self.password)


class Settings(BaseModel):
    app_name: str = "Storefront API"
    version: str = "1.0.0"
    environment: str = "development"
    port: int = 5001
    log_level: str = "INFO"

    database_url: str = "sqlite:///./storefront.db"
    db_connect_attempts: int = 3
    db_connect_backoff_seconds: float = 3.0

    tokens: TokenSettings
    mail: MailSettings = Field(default_factory=MailSettings)

    rate_limit_window_ms: int = 15 * 60 * 1000
    rate_limit_max_requests: int = 100

    cors_origins: List[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    upload_dir: str = "uploads"
    max_upload_bytes: int = 5 * 1024 * 1024

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS")
        database_url = os.getenv("DATABASE_URL", "sqlite:///./storefront.db")
        # Render/Heroku style URLs
        if database_url.startswith("postgres://"):
            database_url = database_url.replace("postgres://", "postgresql://", 1)

        return cls(
            environment=os.getenv("ENVIRONMENT", "development"),
            port=int(os.getenv("PORT", "5001")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            database_url=database_url,
            db_connect_attempts=int(os.getenv("DB_CONNECT_ATTEMPTS", "3")),
            db_connect_backoff_seconds=float(os.getenv("DB_CONNECT_BACKOFF_SECONDS", "3")),
            tokens=TokenSettings(
                access_secret=os.getenv("JWT_SECRET", "change-me-access-secret-at-least-32-bytes"),
                refresh_secret=os.getenv("REFRESH_TOKEN_SECRET", "change-me-refresh-secret-at-least-32-bytes"),
                access_ttl_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60")),
                refresh_ttl_days=int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "30")),
            ),
            mail=MailSettings(
                smtp_host=os.getenv("SMTP_HOST", "smtp.gmail.com"),
                smtp_port=int(os.getenv("SMTP_PORT", "587")),
                user=os.getenv("EMAIL_USER"),
                password=os.getenv("EMAIL_PASSWORD"),
                admin_email=os.getenv("ADMIN_EMAIL"),
            ),
            rate_limit_window_ms=int(os.getenv("RATE_LIMIT_WINDOW_MS", str(15 * 60 * 1000))),
            rate_limit_max_requests=int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100")),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()] if origins else list(DEFAULT_CORS_ORIGINS),
            upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
            max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024))),
        )


settings = Settings.from_env()


def configure_logging(level: Optional[str] = None):
    """Route all module loggers to stdout with a timestamped format."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stdout,
    )
