# backend/tracker/config.py
from __future__ import annotations
import os
import re


def sanitize_store_url(store_url: str | None) -> str:
    """
    Turn a shop domain into a filesystem-safe token.

    "https://my-shop.myshopify.com/" -> "my-shop_myshopify_com"
    """
    if not store_url:
        return "default"
    s = store_url.strip().lower()
    s = re.sub(r"^https?://", "", s).rstrip("/")
    s = re.sub(r"[^a-z0-9-]+", "_", s).strip("_")
    return s or "default"


def database_uri_for_store(store_url: str | None) -> str:
    """One SQLite file per shop so switching shops never mixes progress."""
    return f"sqlite:///orders_{sanitize_store_url(store_url)}.sqlite3"


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SHOPIFY_STORE_URL = os.environ.get("SHOPIFY_STORE_URL")

    # Explicit DATABASE_URL wins; otherwise a per-shop SQLite file
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        database_uri_for_store(SHOPIFY_STORE_URL),
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JSON snapshot ({"orders": [...]}) consumed by sync when no payload is posted
    ORDER_SOURCE_PATH = os.environ.get("ORDER_SOURCE_PATH")

    SYNC_HISTORY_LIMIT = int(os.environ.get("SYNC_HISTORY_LIMIT", "10"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
