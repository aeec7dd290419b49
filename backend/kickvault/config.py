# backend/kickvault/config.py
from __future__ import annotations
import os


def _csv(value: str) -> set[str]:
    return {item.strip() for item in value.split(",") if item.strip()}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/kickvault.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///kickvault.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    CORS_ALLOWED_ORIGINS = _csv(os.environ.get(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
    ))

    # Serial allocation retries on unique-constraint races
    SERIAL_ALLOCATION_ATTEMPTS = int(os.environ.get("SERIAL_ALLOCATION_ATTEMPTS", "3"))
    SERIAL_ALLOCATION_BACKOFF_SECONDS = float(os.environ.get("SERIAL_ALLOCATION_BACKOFF_SECONDS", "0.1"))

    # Upper bound on variantsToAdd rows in one inventory request
    MAX_VARIANT_ROWS_PER_REQUEST = int(os.environ.get("MAX_VARIANT_ROWS_PER_REQUEST", "100"))

    # Owner bearer sessions
    SESSION_LIFETIME_HOURS = int(os.environ.get("SESSION_LIFETIME_HOURS", "24"))
    SESSION_IDLE_MINUTES = int(os.environ.get("SESSION_IDLE_MINUTES", "120"))
