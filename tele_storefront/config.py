"""Central configuration for tele_storefront."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Set

logger = logging.getLogger(__name__)


def _split_ints(s: str) -> Set[int]:
    """Parse comma-separated string into a set of integers.

    Args:
        s: Comma-separated string of integers (e.g., "123,456,789")

    Returns:
        Set of parsed integers. Invalid entries are silently skipped.

    Example:
        >>> _split_ints("123,456,invalid,789")
        {123, 456, 789}
    """
    out = set()
    for part in (s or "").split(","):
        p = part.strip()
        if p.isdigit():
            out.add(int(p))
    return out


def _float(name: str, default: float) -> float:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using %s", name, raw, default)
        return default


def _int(name: str, default: int) -> int:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using %s", name, raw, default)
        return default


@dataclass
class Settings:
    """Configuration settings for tele_storefront.

    All settings are loaded from environment variables with sensible defaults.
    """

    BOT_TOKEN: str | None
    ADMIN_CHAT_IDS: Set[int]
    RATE_LIMIT_S: float
    LOADER_MAX_RETRIES: int
    LOADER_BASE_DELAY_S: float
    LOADER_ATTEMPT_TIMEOUT_S: float | None
    PRELOAD_DELAY_S: float
    BACKEND_URL: str | None
    BACKEND_ANON_KEY: str | None
    BACKEND_TIMEOUT_S: float
    CATALOG_TTL_S: float
    APP_ENV: str
    SITE_URL: str
    STATE_FILE: Path
    CURRENCY: str
    STORE_NAME: str
    SUPPORT_CONTACT: str

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"


def _read_settings() -> Settings:
    """Read all configuration from environment variables.

    Returns:
        Settings object with all configuration values.

    Note:
        Invalid numeric values fall back to defaults. A negative retry count
        is clamped to 0 and a non-positive attempt timeout disables it.
    """
    token = os.environ.get("BOT_TOKEN") or None
    admins = _split_ints(os.environ.get("ADMIN_CHAT_IDS", ""))
    rate_limit = _float("RATE_LIMIT_S", 1.0)

    # Deferred page loading
    max_retries = max(0, _int("LOADER_MAX_RETRIES", 3))
    base_delay = _float("LOADER_BASE_DELAY_S", 1.0)
    attempt_timeout = _float("LOADER_ATTEMPT_TIMEOUT_S", 0.0)
    preload_delay = _float("PRELOAD_DELAY_S", 1.0)

    # Hosted backend (REST)
    backend_url = (os.environ.get("BACKEND_URL") or "").rstrip("/") or None
    backend_key = os.environ.get("BACKEND_ANON_KEY") or None
    backend_timeout = _float("BACKEND_TIMEOUT_S", 10.0)
    catalog_ttl = _float("CATALOG_TTL_S", 60.0)

    app_env = (os.environ.get("APP_ENV") or "development").strip().lower()
    site_url = (os.environ.get("SITE_URL") or "http://localhost:3000").rstrip("/")
    state_file = Path(os.environ.get("STATE_FILE") or "/app/data/store_state.json")
    currency = (os.environ.get("CURRENCY") or "GHS").strip().upper()
    store_name = os.environ.get("STORE_NAME") or "Tele Storefront"
    support_contact = os.environ.get("SUPPORT_CONTACT") or "support@example.com"

    return Settings(
        BOT_TOKEN=token,
        ADMIN_CHAT_IDS=admins,
        RATE_LIMIT_S=rate_limit,
        LOADER_MAX_RETRIES=max_retries,
        LOADER_BASE_DELAY_S=base_delay,
        LOADER_ATTEMPT_TIMEOUT_S=attempt_timeout if attempt_timeout > 0 else None,
        PRELOAD_DELAY_S=preload_delay,
        BACKEND_URL=backend_url,
        BACKEND_ANON_KEY=backend_key,
        BACKEND_TIMEOUT_S=backend_timeout,
        CATALOG_TTL_S=catalog_ttl,
        APP_ENV=app_env,
        SITE_URL=site_url,
        STATE_FILE=state_file,
        CURRENCY=currency,
        STORE_NAME=store_name,
        SUPPORT_CONTACT=support_contact,
    )


settings = _read_settings()


def redirect_url(path: str = "", s: Settings | None = None) -> str:
    """Build an absolute storefront URL for `path`.

    Production links are always https.
    """
    s = s or settings
    base = s.SITE_URL
    if s.is_production and base.startswith("http://"):
        base = "https://" + base.removeprefix("http://")
    if path and not path.startswith("/"):
        path = "/" + path
    return f"{base}{path}"


def validate_settings() -> None:
    """Validate critical configuration and log warnings for issues."""
    if settings.BOT_TOKEN is None:
        logger.error("BOT_TOKEN environment variable is not set")
    if not settings.ADMIN_CHAT_IDS:
        logger.warning("ADMIN_CHAT_IDS is empty; admin pages will be unauthorized.")
    if settings.BACKEND_URL is None or settings.BACKEND_ANON_KEY is None:
        logger.warning(
            "BACKEND_URL/BACKEND_ANON_KEY not set; catalog pages will fail to load data."
        )


# Exported constants
TOKEN: str | None = settings.BOT_TOKEN
ADMINS: set[int] = settings.ADMIN_CHAT_IDS
RATE_LIMIT_S: float = settings.RATE_LIMIT_S
CURRENCY: str = settings.CURRENCY
STORE_NAME: str = settings.STORE_NAME

validate_settings()
