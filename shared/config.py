"""Configuration helpers for environment variables."""

from __future__ import annotations

import os
import logging

from dotenv import load_dotenv


logger = logging.getLogger(__name__)


_TRUE_VALUES = {"1", "true"}
_STORE_BACKENDS = {"sql", "supabase", "memory"}


def _should_load_dotenv() -> bool:
    """Return whether local dotenv loading should run."""
    app_env = os.getenv("APP_ENV", "dev").strip().lower()
    return app_env in {"dev", "local"}


if _should_load_dotenv():
    load_dotenv()


def get_env(name: str, default: str | None = None) -> str | None:
    """Return a raw environment value or default."""
    return os.getenv(name, default)


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
        return ["http://localhost:5173", "http://127.0.0.1:5173"]

    logger.warning(
        "cors_allow_origins_empty_in_prod app_env=%s; define CORS_ALLOW_ORIGINS",
        app_env(),
    )

    return []


def log_level() -> str:
    """Return the root log level name."""
    return (get_env("LOG_LEVEL", "INFO") or "INFO").strip().upper() or "INFO"


def store_backend() -> str:
    """Return which transaction store adapter to build."""
    raw_value = (get_env("STORE_BACKEND", "sql") or "sql").strip().lower()
    if raw_value not in _STORE_BACKENDS:
        logger.warning("store_backend_unknown value=%s; falling back to sql", raw_value)
        return "sql"
    return raw_value


def database_url() -> str:
    """Return the SQLAlchemy database URL."""
    return (get_env("DATABASE_URL", "") or "").strip() or "sqlite:///./ledger.db"


def sql_echo() -> bool:
    """Return whether SQLAlchemy should echo emitted SQL."""
    raw_value = get_env("SQL_ECHO", "") or ""
    return raw_value.strip().lower() in _TRUE_VALUES


def supabase_url() -> str | None:
    """Return Supabase URL when configured."""
    return get_env("SUPABASE_URL")


def supabase_service_role_key() -> str | None:
    """Return Supabase service role key when configured."""
    return get_env("SUPABASE_SERVICE_ROLE_KEY")


def supabase_anon_key() -> str | None:
    """Return Supabase anon key when configured."""
    return get_env("SUPABASE_ANON_KEY")
