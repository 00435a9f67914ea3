# backend/pdv/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Tokens are signed with JWT_SECRET; falls back to SECRET_KEY
    JWT_SECRET = os.environ.get("JWT_SECRET") or SECRET_KEY
    JWT_ALGORITHM = "HS256"
    JWT_EXPIRES_HOURS = int(os.environ.get("JWT_EXPIRES_HOURS", "24"))

    # SQLite DB stored in backend/instance/pdv.sqlite3 unless DATABASE_URL is set
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///pdv.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # When disabled, every request is served by the in-memory store
    PERSISTENT_STORAGE_ENABLED = _env_flag("PERSISTENT_STORAGE_ENABLED", True)
    AUTO_CREATE_TABLES = _env_flag("AUTO_CREATE_TABLES", True)

    # Super-admin login is disabled until a password is configured
    SUPER_ADMIN_EMAIL = os.environ.get("SUPER_ADMIN_EMAIL", "admin@vitana.com")
    SUPER_ADMIN_PASSWORD = os.environ.get("SUPER_ADMIN_PASSWORD")

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Calendar boundaries for "today"/"month" sale filters
    POS_TIMEZONE = os.environ.get("POS_TIMEZONE", "UTC")

    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    ]

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    API_VERSION = "2.0.0"


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    JWT_SECRET = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    PERSISTENT_STORAGE_ENABLED = True
    AUTO_CREATE_TABLES = True
    SUPER_ADMIN_EMAIL = "admin@vitana.com"
    SUPER_ADMIN_PASSWORD = "SuperAdmin2024!"
    BCRYPT_ROUNDS = 4
    POS_TIMEZONE = "UTC"
    LOG_LEVEL = "DEBUG"
