"""
InternArea - Application configuration.

Centralized configuration using Pydantic Settings for environment variable management.

Environment Variables:
    All settings can be overridden via environment variables with INTERNAREA_ prefix.

    Auth Settings:
        INTERNAREA_ID_TOKEN_SECRET=...              - Identity provider signing key (required in production)
        INTERNAREA_ID_TOKEN_ISSUER=...              - Expected "iss" claim (optional)
        INTERNAREA_ALLOW_FRIENDS_COUNT_OVERRIDE=true - Honor the X-Friends-Count evaluation header

    Email Settings:
        INTERNAREA_RESEND_API_KEY=...    - Resend HTTP API key (preferred)
        INTERNAREA_SMTP_HOST=...         - SMTP fallback
"""
from pydantic_settings import BaseSettings
from typing import Optional


class AuthSettings(BaseSettings):
    """
    Identity token configuration.

    Tokens are issued by the identity provider and only verified here.
    For production deployment:
        1. Generate a secret key: openssl rand -hex 32
        2. Set INTERNAREA_ID_TOKEN_SECRET to the provider's signing key
        3. Set INTERNAREA_ALLOW_FRIENDS_COUNT_OVERRIDE=false
    """
    id_token_secret: str = "development-secret-key-change-in-production"
    id_token_algorithm: str = "HS256"
    id_token_issuer: Optional[str] = None
    id_token_audience: Optional[str] = None
    id_token_expire_minutes: int = 60

    # Evaluation only: lets a client supply its friend count per request
    allow_friends_count_override: bool = True

    class Config:
        env_prefix = "INTERNAREA_"
        env_file = ".env"
        extra = "ignore"


class EmailSettings(BaseSettings):
    """
    Outbound email configuration.

    Resend is used when an API key is set, otherwise SMTP when host and
    username are set. With neither, password delivery runs in mock mode.
    """
    resend_api_key: Optional[str] = None
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    from_email: str = "no-reply@internarea.local"
    from_name: str = "InternArea"

    class Config:
        env_prefix = "INTERNAREA_"
        env_file = ".env"
        extra = "ignore"


class Settings(BaseSettings):
    """Combined application settings."""
    auth: AuthSettings = AuthSettings()
    email: EmailSettings = EmailSettings()

    # CORS allowed origins (comma-separated, e.g. "http://localhost:3000,https://myapp.com")
    allowed_origins: str = "*"

    # Request throttling (slowapi)
    rate_limit_enabled: bool = True

    # Database
    database_url: str = "sqlite:///./data/internarea.db"

    # Database connection pool (PostgreSQL only)
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 1800

    # SQLite write-lock wait (milliseconds)
    sqlite_busy_timeout_ms: int = 5000

    # Database retry settings (maintenance jobs only)
    db_retry_max_attempts: int = 3
    db_retry_base_delay: float = 0.1

    class Config:
        env_prefix = "INTERNAREA_"
        env_file = ".env"
        extra = "ignore"


# Global settings instance
settings = Settings()
