"""
Environment-aware configuration.
Signing secrets, token lifetimes and cookie scoping all come from the
environment (.env is read when present).
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: cookies only flow cross-origin with credentials enabled
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    APP_ENV = os.getenv("APP_ENV", "dev")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///session-auth.db")

    # Two token types, two secrets
    ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET", "dev-access-secret-change-me-0123456789")
    REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET", "dev-refresh-secret-change-me-0123456789")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "900")))
    REFRESH_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("REFRESH_TOKEN_EXPIRES_SECONDS", "86400")))

    # Cookie scoping. Clearing a cookie must reuse exactly these attributes.
    ACCESS_COOKIE_NAME = "accessToken"
    REFRESH_COOKIE_NAME = "refreshToken"
    ACCESS_COOKIE_PATH = "/"
    REFRESH_COOKIE_PATH = "/api/auth"
    COOKIE_DOMAIN = os.getenv("COOKIE_DOMAIN") or None
    COOKIE_SECURE = _env_bool("COOKIE_SECURE", False)
    COOKIE_SAMESITE = os.getenv("COOKIE_SAMESITE", "Lax")

    BLACKLIST_SWEEPER_ENABLED = _env_bool("BLACKLIST_SWEEPER_ENABLED", True)
    BLACKLIST_SWEEP_INTERVAL_SECONDS = int(os.getenv("BLACKLIST_SWEEP_INTERVAL_SECONDS", "900"))

    PASSWORD_MIN_LENGTH = int(os.getenv("PASSWORD_MIN_LENGTH", "8"))


class DevelopmentConfig(BaseConfig):
    DEBUG = True


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    ACCESS_TOKEN_SECRET = "test-access-secret-0123456789abcdef"
    REFRESH_TOKEN_SECRET = "test-refresh-secret-0123456789abcdef"
    COOKIE_SECURE = False
    COOKIE_SAMESITE = "Lax"
    BLACKLIST_SWEEPER_ENABLED = False


class ProductionConfig(BaseConfig):
    DEBUG = False
    # Cross-site SPA + API: browsers only send SameSite=None cookies over HTTPS
    COOKIE_SECURE = _env_bool("COOKIE_SECURE", True)
    COOKIE_SAMESITE = os.getenv("COOKIE_SAMESITE", "None")


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
