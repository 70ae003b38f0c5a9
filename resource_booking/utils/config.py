"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    database_path: Path
    database_busy_timeout_seconds: float
    log_level: str
    operations_token: str | None
    operations_session_ttl_seconds: int
    currency_decimal_places: int
    bookings_page_default_limit: int
    bookings_page_max_limit: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings once per process; tests derive variants with `replace`."""
    database_path = os.getenv(
        "BOOKING_DATABASE_PATH",
        str(PROJECT_ROOT / "data" / "bookings.db"),
    )
    return Settings(
        app_name=os.getenv("APP_NAME", "Resource Booking Engine"),
        app_version=os.getenv("APP_VERSION", "1.0.0"),
        database_path=Path(database_path),
        database_busy_timeout_seconds=_env_float("BOOKING_DATABASE_BUSY_TIMEOUT", 5.0),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        operations_token=os.getenv("OPERATIONS_TOKEN") or None,
        operations_session_ttl_seconds=_env_int("OPERATIONS_SESSION_TTL_SECONDS", 8 * 3600),
        currency_decimal_places=_env_int("CURRENCY_DECIMAL_PLACES", 2),
        bookings_page_default_limit=_env_int("BOOKINGS_PAGE_DEFAULT_LIMIT", 50),
        bookings_page_max_limit=_env_int("BOOKINGS_PAGE_MAX_LIMIT", 200),
    )
