# sopopped/core/config.py
import os
import tempfile
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - SESSION_SECRET (signing key for the session cookie)

    Optional:
      - DATABASE_URL (defaults to the local MySQL storefront database)
      - RATE_LIMIT_DIR (where per-client counter files live)
    """

    PROJECT_NAME: str = "So Popped Storefront API"
    API_PREFIX: str = "/api"

    # MySQL via PyMySQL; any SQLAlchemy URL works (tests use sqlite)
    DATABASE_URL: str = "mysql+pymysql://root@localhost:3306/sopopped?charset=utf8mb4"

    # Session cookie (signed JWT referencing a server-side session row)
    SESSION_SECRET: str
    SESSION_ALG: str = "HS256"
    SESSION_COOKIE_NAME: str = "sopopped_session"
    SESSION_TTL_MINUTES: int = 120
    SESSION_COOKIE_SECURE: bool = False

    CORS_ORIGINS: list[str] = [
        "http://localhost:8080",
        "http://127.0.0.1:8080",
    ]

    # File-based per-client throttle
    RATE_LIMIT_DIR: str = os.path.join(tempfile.gettempdir(), "sopopped_rate")
    RATE_LIMIT_MAX_REQUESTS: int = 15
    RATE_LIMIT_WINDOW_SECONDS: int = 60

    ORDER_LIST_DEFAULT_LIMIT: int = 10
    ORDER_LIST_MAX_LIMIT: int = 100

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
