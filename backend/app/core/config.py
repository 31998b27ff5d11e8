"""Application configuration with security-first defaults.

Environment variables override all defaults.
CRITICAL: SECRET_KEY must be set in .env - will fail fast if missing in production.
"""

import os
from decimal import Decimal
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Load backend/.env for local development; real environment variables win
_BACKEND_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=_BACKEND_DIR / ".env", override=False)


def _env_list(name: str, default: str) -> List[str]:
    return [part.strip() for part in os.getenv(name, default).split(",") if part.strip()]


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # Database Configuration
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./pharmacy.db")
    # Seconds a SQLite writer waits for the database lock
    SQLITE_BUSY_TIMEOUT: int = int(os.getenv("SQLITE_BUSY_TIMEOUT", "30"))

    # JWT Security - CRITICAL
    SECRET_KEY: str = os.getenv("SECRET_KEY", None)
    if not SECRET_KEY:
        # Generate with: python -c "import secrets; print(secrets.token_urlsafe(32))"
        if os.getenv("ENVIRONMENT", "development") == "production":
            raise ValueError(
                "SECRET_KEY must be set in production environment. "
                "Generate with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
            )
        import warnings
        warnings.warn(
            "SECRET_KEY not set in environment. Using development default. "
            "Set SECRET_KEY in .env to a strong random value.",
            RuntimeWarning
        )
        SECRET_KEY = "development-only-weak-default-change-in-production"

    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
    SESSION_COOKIE_NAME: str = "pharmacy_session"

    # CORS (specific origins only, no wildcards)
    CORS_ORIGINS: List[str] = _env_list(
        "CORS_ORIGINS",
        "http://localhost:5000,http://127.0.0.1:5000,http://localhost:3000,http://127.0.0.1:3000",
    )
    ALLOWED_HOSTS: List[str] = _env_list("ALLOWED_HOSTS", "localhost,127.0.0.1")

    # Cookies
    SECURE_COOKIES: bool = os.getenv("ENVIRONMENT", "development") == "production"
    SAME_SITE_COOKIE: str = "strict"

    # Rate Limiting
    RATE_LIMIT_REQUESTS: int = int(os.getenv("RATE_LIMIT_REQUESTS", "100"))
    RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

    # Password Policy
    MIN_PASSWORD_LENGTH: int = int(os.getenv("MIN_PASSWORD_LENGTH", "8"))
    REQUIRE_NUMBERS: bool = True

    # Stock & orders
    DEFAULT_LOW_STOCK_THRESHOLD: int = int(os.getenv("DEFAULT_LOW_STOCK_THRESHOLD", "10"))
    RESTOCK_ON_CANCEL: bool = _env_bool("RESTOCK_ON_CANCEL", "true")
    ORDER_NUMBER_PREFIX: str = os.getenv("ORDER_NUMBER_PREFIX", "ORD")
    # Allowed gap between client-supplied and computed money amounts
    AMOUNT_TOLERANCE: Decimal = Decimal(os.getenv("AMOUNT_TOLERANCE", "0.01"))

    # Security Features
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = ENVIRONMENT == "development"


settings = Settings()
