from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    cors_allow_credentials: bool
    profile_db_path: str
    analytics_enabled: bool
    analytics_db_path: str
    analytics_retention_days: int
    resume_fetch_timeout_s: float
    ats_primary_chunk_chars: int
    ats_secondary_chunk_chars: int
    ats_followup_chunk_chars: int
    ats_max_output_tokens: int
    ats_followup_max_output_tokens: int
    ats_attempt_delay_ms: int
    ats_max_resume_chars: int


settings = Settings(
    api_key=_get_env("API_KEY"),
    rate_limit=_get_env("RATE_LIMIT", "10/minute") or "10/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX"),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", True),
    profile_db_path=_get_env("PROFILE_DB_PATH", "data/profiles.db") or "data/profiles.db",
    analytics_enabled=_get_env_bool("ANALYTICS_ENABLED", True),
    analytics_db_path=_get_env("ANALYTICS_DB_PATH", "data/analytics.db") or "data/analytics.db",
    analytics_retention_days=_get_env_int("ANALYTICS_RETENTION_DAYS", 90),
    resume_fetch_timeout_s=_get_env_float("RESUME_FETCH_TIMEOUT_S", 15.0),
    ats_primary_chunk_chars=_get_env_int("ATS_PRIMARY_CHUNK_CHARS", 8000),
    ats_secondary_chunk_chars=_get_env_int("ATS_SECONDARY_CHUNK_CHARS", 2000),
    ats_followup_chunk_chars=_get_env_int("ATS_FOLLOWUP_CHUNK_CHARS", 1400),
    ats_max_output_tokens=_get_env_int("ATS_MAX_OUTPUT_TOKENS", 800),
    ats_followup_max_output_tokens=_get_env_int("ATS_FOLLOWUP_MAX_OUTPUT_TOKENS", 120),
    ats_attempt_delay_ms=_get_env_int("ATS_ATTEMPT_DELAY_MS", 250),
    ats_max_resume_chars=_get_env_int("ATS_MAX_RESUME_CHARS", 40000),
)

if settings.ats_secondary_chunk_chars > settings.ats_primary_chunk_chars:
    raise RuntimeError("ATS_SECONDARY_CHUNK_CHARS must not exceed ATS_PRIMARY_CHUNK_CHARS.")

__all__ = ["Settings", "settings"]
