"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "germandub",
    "environment": "dev",
    "http": {
        "timeout_seconds": 15.0,
        "user_agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/120.0.0.0 Safari/537.36"
        ),
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "debrid": {
        "rd_api_key": None,
        "timeout_seconds": 15.0,
    },
    "metadata": {
        "omdb_api_key": None,
        "timeout_seconds": 10.0,
    },
    "site": {
        "base_url": "https://s.to",
        "search_timeout_seconds": 10.0,
        "max_redirects": 5,
    },
    "search": {
        "fallback_queries": True,
        "hit_selection": "first",
    },
}
