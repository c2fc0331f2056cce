"""
Environment-aware configuration.
Secrets, token lifetimes, the refresh cookie and the database URL all come
from the environment (or a .env file) with development defaults.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present

DEV_SECRET_KEY = "dev-secret-key"
DEV_JWT_SECRET = "dev-secret-change-me-before-deploying"


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", DEV_SECRET_KEY)  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///session-auth.db")
    # Token configuration
    JWT_SECRET = os.getenv("JWT_SECRET", DEV_JWT_SECRET)
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "1800")))
    REFRESH_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("REFRESH_TOKEN_EXPIRES_SECONDS", "86400")))
    # Falls back to JWT_SECRET when unset
    USER_REFERENCE_SECRET = os.getenv("USER_REFERENCE_SECRET")
    # Refresh token cookie
    SESSION_COOKIE_KEY = os.getenv("SESSION_COOKIE_KEY", "refresh_token")
    SESSION_COOKIE_SECURE = False


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    JWT_SECRET = "test-secret-with-enough-length-for-hs256"
    USER_REFERENCE_SECRET = "test-reference-secret"
    ACCESS_TOKEN_EXPIRES = timedelta(minutes=30)
    REFRESH_TOKEN_EXPIRES = timedelta(hours=24)
    SESSION_COOKIE_KEY = "refresh_token"


class ProductionConfig(BaseConfig):
    DEBUG = False
    SESSION_COOKIE_SECURE = True


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        if ProductionConfig.SECRET_KEY == DEV_SECRET_KEY:
            raise RuntimeError("SECRET_KEY must be set in production")
        if ProductionConfig.JWT_SECRET == DEV_JWT_SECRET:
            raise RuntimeError("JWT_SECRET must be set in production")
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
