"""Configuration helpers for environment variables."""

from __future__ import annotations

import os
import logging
from dataclasses import dataclass

from dotenv import load_dotenv


logger = logging.getLogger(__name__)


DEFAULT_PORT = 5000
DEFAULT_SEED_SOURCE_URL = "https://s3.amazonaws.com/roxiler.com/product_transaction.json"


def _should_load_dotenv() -> bool:
    """Return whether local dotenv loading should run."""
    app_env = os.getenv("APP_ENV", "dev").strip().lower()
    return app_env in {"dev", "local"}


if _should_load_dotenv():
    load_dotenv()


def get_env(name: str, default: str | None = None) -> str | None:
    """Return a raw environment value or default."""
    return os.getenv(name, default)


def _get_float(name: str, default: float) -> float:
    raw_value = (get_env(name, "") or "").strip()
    if not raw_value:
        return default
    try:
        value = float(raw_value)
    except ValueError:
        logger.warning("invalid_float_env name=%s value=%s default=%s", name, raw_value, default)
        return default
    return value if value > 0 else default


def app_env() -> str:
    """Return the current application environment."""
    return (get_env("APP_ENV", "dev") or "dev").strip() or "dev"


def cors_allow_origins() -> list[str]:
    """Return CORS allowed origins from env with safe environment defaults."""
    raw_origins = get_env("CORS_ALLOW_ORIGINS", "") or ""
    parsed_origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]

    if parsed_origins:
        return parsed_origins

    if app_env().strip().lower() in {"dev", "local"}:
        return ["http://localhost:3000", "http://127.0.0.1:3000"]

    logger.warning(
        "cors_allow_origins_empty_in_prod app_env=%s; define CORS_ALLOW_ORIGINS",
        app_env(),
    )

    return []


def supabase_url() -> str | None:
    """Return Supabase URL when configured."""
    return get_env("SUPABASE_URL")


def supabase_service_role_key() -> str | None:
    """Return Supabase service role key when configured."""
    return get_env("SUPABASE_SERVICE_ROLE_KEY")


def transactions_table() -> str:
    """Return the store table holding transaction rows."""
    return (get_env("TRANSACTIONS_TABLE", "transactions") or "transactions").strip() or "transactions"


def store_timeout_seconds() -> float:
    return _get_float("STORE_TIMEOUT_SECONDS", 10.0)


def seed_source_url() -> str:
    """Return the remote JSON feed used to seed the store."""
    return (get_env("SEED_SOURCE_URL", "") or "").strip() or DEFAULT_SEED_SOURCE_URL


def seed_timeout_seconds() -> float:
    return _get_float("SEED_TIMEOUT_SECONDS", 30.0)


def host() -> str:
    return (get_env("HOST", "0.0.0.0") or "0.0.0.0").strip() or "0.0.0.0"


def port() -> int:
    """Return listening port, falling back to the default when unset or invalid."""
    raw_value = (get_env("PORT", "") or "").strip()
    if not raw_value:
        return DEFAULT_PORT
    try:
        return int(raw_value)
    except ValueError:
        logger.warning("invalid_port_env value=%s default=%s", raw_value, DEFAULT_PORT)
        return DEFAULT_PORT


def api_prefix() -> str:
    """Return the route prefix, normalized to a leading slash without trailing slash."""
    raw_value = get_env("API_PREFIX")
    if raw_value is None:
        return "/api"
    cleaned = raw_value.strip().strip("/")
    return f"/{cleaned}" if cleaned else ""


def log_level() -> str:
    """Return a standard logging level name, INFO when unset or unknown."""
    raw_value = (get_env("LOG_LEVEL", "INFO") or "INFO").strip().upper()
    if raw_value in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        return raw_value
    return "INFO"


@dataclass(frozen=True, slots=True)
class AppSettings:
    """Process-wide settings resolved once at startup."""

    supabase_url: str | None = None
    supabase_service_role_key: str | None = None
    transactions_table: str = "transactions"
    store_timeout_seconds: float = 10.0
    seed_source_url: str = DEFAULT_SEED_SOURCE_URL
    seed_timeout_seconds: float = 30.0
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    api_prefix: str = "/api"
    cors_allow_origins: tuple[str, ...] = ()
    log_level: str = "INFO"

    @property
    def store_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)


def load_settings() -> AppSettings:
    """Build settings from the current environment."""
    return AppSettings(
        supabase_url=supabase_url(),
        supabase_service_role_key=supabase_service_role_key(),
        transactions_table=transactions_table(),
        store_timeout_seconds=store_timeout_seconds(),
        seed_source_url=seed_source_url(),
        seed_timeout_seconds=seed_timeout_seconds(),
        host=host(),
        port=port(),
        api_prefix=api_prefix(),
        cors_allow_origins=tuple(cors_allow_origins()),
        log_level=log_level(),
    )
