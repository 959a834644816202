from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class Settings:
    """Centralized application settings.

    This keeps environment-variable handling in one place so other modules can
    depend on strongly-typed attributes instead of calling os.getenv
    directly.
    """

    # Table store selection: "memory" (default), "sql" or "rest".
    store_backend: str = os.getenv("STORE_BACKEND", "memory")

    # SQLAlchemy database URL used when STORE_BACKEND=sql.
    database_url: Optional[str] = os.getenv("DATABASE_URL")

    # Hosted backend REST endpoint and key used when STORE_BACKEND=rest, e.g.
    # "https://project.example.co". Tables are addressed under /rest/v1/.
    store_rest_url: Optional[str] = os.getenv("STORE_REST_URL")
    store_api_key: Optional[str] = os.getenv("STORE_API_KEY")
    store_timeout_seconds: float = float(os.getenv("STORE_TIMEOUT_SECONDS", "10"))

    # How list views react to change-feed events: "patch" applies the changed
    # row in place, "refetch" reloads the whole collection.
    list_sync_mode: str = os.getenv("LIST_SYNC_MODE", "patch")

    # Number of alert log entries shown on the dashboard.
    dashboard_recent_alerts_limit: int = int(os.getenv("DASHBOARD_RECENT_ALERTS_LIMIT", "5"))

    # Basic API authentication configuration.
    # When ENABLE_API_AUTH=true, protected endpoints require a valid API key.
    enable_api_auth: bool = os.getenv("ENABLE_API_AUTH", "false").lower() == "true"
    # Comma-separated list of allowed API keys when auth is enabled.
    api_keys: Optional[str] = os.getenv("API_KEYS")

    # CORS configuration: comma-separated origins (e.g. "https://app.example.com,https://admin.example.com").
    # Default is "*" (allow all) which is acceptable for local development but
    # should be tightened in production.
    cors_allow_origins: str = os.getenv("CORS_ALLOW_ORIGINS", "*")


settings = Settings()
