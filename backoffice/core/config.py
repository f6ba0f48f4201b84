"""
Runtime configuration

All tunables come from environment variables and are collected into plain
dataclasses that get handed to the services that need them.

    DATABASE_URL            postgresql://user:password@db:5432/brokerage_db
    AUTH_JWT_SECRET         shared secret of the identity provider (HS256)
    AUTH_JWT_AUDIENCE       expected "aud" claim, empty to skip the check
    DEFAULT_PAGE_SIZE       rows per list page when pageSize is missing (10)
    MAX_PAGE_SIZE           upper bound for pageSize (100)
    LIST_CACHE_TTL_SECONDS  lifetime of cached list pages, 0 disables (60)
    LIST_CACHE_MAX_ENTRIES  most list pages kept at once (1000)
    CORS_ORIGINS            comma separated origins, "*" for all
    LOG_LEVEL               logging level name (INFO)
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class QueryConfig:
    """Paging limits for the tabular list views."""

    default_page_size: int = 10
    max_page_size: int = 100


@dataclass(frozen=True)
class Settings:
    database_url: str = "postgresql://user:password@db:5432/brokerage_db"
    jwt_secret: str = "change-me-identity-provider-secret"
    jwt_algorithm: str = "HS256"
    jwt_audience: str = ""
    list_cache_ttl_seconds: int = 60
    list_cache_max_entries: int = 1000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    query: QueryConfig = field(default_factory=QueryConfig)


def load_settings() -> Settings:
    """Build settings from the current environment."""
    default_page_size = _env_int("DEFAULT_PAGE_SIZE", 10)
    if default_page_size < 1:
        default_page_size = 10
    max_page_size = max(_env_int("MAX_PAGE_SIZE", 100), default_page_size)

    origins = os.getenv("CORS_ORIGINS", "*")
    return Settings(
        database_url=os.getenv("DATABASE_URL", Settings.database_url),
        jwt_secret=os.getenv("AUTH_JWT_SECRET", Settings.jwt_secret),
        jwt_audience=os.getenv("AUTH_JWT_AUDIENCE", ""),
        list_cache_ttl_seconds=max(_env_int("LIST_CACHE_TTL_SECONDS", 60), 0),
        list_cache_max_entries=max(_env_int("LIST_CACHE_MAX_ENTRIES", 1000), 1),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        query=QueryConfig(default_page_size=default_page_size, max_page_size=max_page_size),
    )


@lru_cache()
def get_settings() -> Settings:
    return load_settings()
