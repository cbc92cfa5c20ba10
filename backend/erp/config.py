# backend/erp/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/erp.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///erp.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # When disabled the app runs against UnavailableStore (reads empty, writes skipped)
    STORE_ENABLED = _env_flag("STORE_ENABLED", True)

    # The single authorized account
    AUTH_EMAIL = os.environ.get("AUTH_EMAIL", "")
    AUTH_PASSWORD = os.environ.get("AUTH_PASSWORD", "")
    AUTH_DISPLAY_NAME = os.environ.get("AUTH_DISPLAY_NAME", "Administrator")
    SESSION_HOURS = int(os.environ.get("SESSION_HOURS", "12"))
    # bcrypt cost for the in-memory hash of AUTH_PASSWORD
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    CURRENCY_SYMBOL = os.environ.get("CURRENCY_SYMBOL", "Rs")
    SHOP_NAME = os.environ.get("SHOP_NAME", "Clothing Store")

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    ]
