from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from urllib.parse import urlparse

from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).resolve().parent.parent
ENV_FILE = PROJECT_ROOT / ".env"
load_dotenv(ENV_FILE, override=False)

PROFILE_BACKENDS = ("supabase", "sql", "memory")


def _as_bool(value: str | None, *, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_int(
    value: str | None,
    *,
    default: int,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    if value is None or not value.strip():
        parsed = default
    else:
        try:
            parsed = int(value.strip())
        except ValueError as exc:
            raise ValueError(f"Expected integer value, got: {value!r}") from exc

    if min_value is not None and parsed < min_value:
        raise ValueError(f"Integer value {parsed} is less than allowed minimum {min_value}.")
    if max_value is not None and parsed > max_value:
        raise ValueError(f"Integer value {parsed} exceeds allowed maximum {max_value}.")
    return parsed


def _as_float(value: str | None, *, default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        parsed = float(value.strip())
    except ValueError as exc:
        raise ValueError(f"Expected numeric value, got: {value!r}") from exc
    if parsed <= 0:
        raise ValueError(f"Expected a positive value, got: {parsed}")
    return parsed


def _as_list(value: str | None, *, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


def _normalize_supabase_url(raw_url: str) -> str:
    url = raw_url.strip().rstrip("/")
    if not url:
        return ""
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError("SUPABASE_URL must be an http(s) URL.")
    return url


def _normalize_database_url(raw_url: str) -> str:
    url = raw_url.strip()
    if not url:
        return ""
    if url.startswith("sqlite"):
        return url
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+psycopg2://", 1)
    elif url.startswith("postgresql://") and "+psycopg2" not in url:
        url = url.replace("postgresql://", "postgresql+psycopg2://", 1)

    if not url.startswith("postgresql+psycopg2://"):
        raise ValueError("DATABASE_URL must be a PostgreSQL or SQLite URL.")
    return url


@dataclass(frozen=True)
class Settings:
    app_name: str
    environment: str
    debug: bool
    log_level: str
    port: int

    supabase_url: str
    supabase_anon_key: str
    supabase_timeout_seconds: float
    profile_table: str

    profile_backend: str
    database_url: str

    signup_creates_profile: bool
    profile_cache_ttl_seconds: int
    cors_origins: list[str]


def _validate(settings: Settings) -> None:
    if settings.profile_backend not in PROFILE_BACKENDS:
        raise ValueError(
            f"PROFILE_BACKEND must be one of {', '.join(PROFILE_BACKENDS)}, got: {settings.profile_backend!r}"
        )
    if settings.profile_backend == "sql" and not settings.database_url:
        raise RuntimeError("DATABASE_URL is required when PROFILE_BACKEND=sql")

    if settings.environment != "production":
        return

    missing: list[str] = []
    if not settings.supabase_url:
        missing.append("SUPABASE_URL")
    if not settings.supabase_anon_key:
        missing.append("SUPABASE_ANON_KEY")
    if missing:
        raise RuntimeError(
            "Missing required environment variables for production: " + ", ".join(missing)
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    environment = (os.getenv("APP_ENV") or "development").strip().lower()
    settings = Settings(
        app_name=(os.getenv("APP_NAME") or "harmonIQ").strip(),
        environment=environment,
        debug=_as_bool(os.getenv("DEBUG"), default=environment != "production"),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
        port=_as_int(os.getenv("PORT"), default=8000, min_value=1, max_value=65535),
        supabase_url=_normalize_supabase_url(os.getenv("SUPABASE_URL") or ""),
        supabase_anon_key=(os.getenv("SUPABASE_ANON_KEY") or "").strip(),
        supabase_timeout_seconds=_as_float(os.getenv("SUPABASE_TIMEOUT_SECONDS"), default=15.0),
        profile_table=(os.getenv("PROFILE_TABLE") or "user_profiles").strip(),
        profile_backend=(os.getenv("PROFILE_BACKEND") or "supabase").strip().lower(),
        database_url=_normalize_database_url(os.getenv("DATABASE_URL") or ""),
        signup_creates_profile=_as_bool(os.getenv("SIGNUP_CREATES_PROFILE"), default=True),
        profile_cache_ttl_seconds=_as_int(
            os.getenv("PROFILE_CACHE_TTL_SECONDS"),
            default=300,
            min_value=0,
            max_value=60 * 60 * 24,
        ),
        cors_origins=_as_list(
            os.getenv("CORS_ORIGINS"),
            default=[
                "http://localhost:3000",
                "http://127.0.0.1:3000",
            ],
        ),
    )

    _validate(settings)
    return settings
