# backend/cherry_pos/config.py
from __future__ import annotations
import os


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return int(value)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/cherry_pos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///cherry_pos.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Administrator bearer/refresh token pair
    ACCESS_TOKEN_TTL_HOURS = _env_int("ACCESS_TOKEN_TTL_HOURS", 24)
    REFRESH_TOKEN_TTL_DAYS = _env_int("REFRESH_TOKEN_TTL_DAYS", 30)

    # Staff sessions have a fixed lifetime, no idle extension
    STAFF_SESSION_TTL_HOURS = _env_int("STAFF_SESSION_TTL_HOURS", 12)

    # bcrypt cost factor for admin and staff passwords
    BCRYPT_ROUNDS = _env_int("BCRYPT_ROUNDS", 12)

    # Placeholder domain for imported staff without a usable email
    IMPORT_EMAIL_DOMAIN = os.environ.get("IMPORT_EMAIL_DOMAIN", "cherrydining.local")

    # Per-subscriber buffer of the change feed
    REALTIME_QUEUE_SIZE = _env_int("REALTIME_QUEUE_SIZE", 256)
    REALTIME_KEEPALIVE_SECONDS = _env_int("REALTIME_KEEPALIVE_SECONDS", 15)

    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if origin.strip()
    ]

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Legacy POS catalog tables are <prefix>categories / <prefix>items
    LEGACY_TABLE_PREFIX = os.environ.get("LEGACY_TABLE_PREFIX", "ospos_")
