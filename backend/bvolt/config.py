# backend/bvolt/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str) -> list[str]:
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # "development" exposes internal error details in 500 responses
    APP_ENV = os.environ.get("APP_ENV", "production")
    EXPOSE_ERROR_DETAILS = APP_ENV == "development"

    # PostgreSQL in production (postgresql+psycopg2://...), SQLite file otherwise
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///bvolt.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = _env_bool("LOG_SQL")

    # Pool settings, applied only to server databases (see engine_options_for)
    DB_POOL_SIZE = int(os.environ.get("DB_POOL_SIZE", "20"))
    DB_POOL_TIMEOUT = float(os.environ.get("DB_POOL_TIMEOUT", "2"))
    DB_POOL_RECYCLE = int(os.environ.get("DB_POOL_RECYCLE", "1800"))

    SESSION_ABSOLUTE_TIMEOUT_HOURS = int(os.environ.get("SESSION_ABSOLUTE_TIMEOUT_HOURS", "24"))
    SESSION_IDLE_TIMEOUT_HOURS = int(os.environ.get("SESSION_IDLE_TIMEOUT_HOURS", "2"))

    CORS_ORIGINS = _env_list("FRONTEND_URL", "http://localhost:5173,http://127.0.0.1:5173")


def engine_options_for(config) -> dict:
    """SQLite engines keep SQLAlchemy's default pool; everything else gets a sized pool."""
    uri = config.get("SQLALCHEMY_DATABASE_URI", "")
    if uri.startswith("sqlite"):
        return {}
    return {
        "pool_size": config.get("DB_POOL_SIZE", 20),
        "pool_timeout": config.get("DB_POOL_TIMEOUT", 2),
        "pool_recycle": config.get("DB_POOL_RECYCLE", 1800),
        "pool_pre_ping": True,
    }
