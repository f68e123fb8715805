# backend/marketplace/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Signs bearer credentials; override in every real deployment
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")
    TOKEN_MAX_AGE_SECONDS = int(os.environ.get("TOKEN_MAX_AGE_SECONDS", 7 * 24 * 60 * 60))

    # "sql" stores documents through SQLAlchemy, "memory" keeps them in-process
    STORAGE_BACKEND = os.environ.get("STORAGE_BACKEND", "sql").lower()
    STORAGE_FALLBACK_TO_MEMORY = _env_bool("STORAGE_FALLBACK_TO_MEMORY", True)

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///marketplace.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", 12))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174",
        ).split(",")
        if origin.strip()
    ]
