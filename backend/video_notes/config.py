from __future__ import annotations

from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageDialect(str, Enum):
    """How the notes store persists tag sequences."""

    ARRAY = "array"  # Postgres text[] reached through Supabase/PostgREST
    JSON = "json"  # SQLite TEXT column holding a JSON-encoded list


class AuthMode(str, Enum):
    SUPABASE = "supabase"
    HEADER = "header"


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="APP_",
        extra="ignore",
        case_sensitive=False,
    )

    # Application
    debug: bool = False
    log_level: str = "INFO"

    # API
    api_prefix: str = "/api/v1"
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    cors_origin_regex: str | None = None
    trusted_hosts: list[str] = ["*"]
    root_path: str = ""

    # Storage
    storage_dialect: StorageDialect = StorageDialect.JSON
    sqlite_path: str = "data/video_notes.db"

    # Supabase (array dialect and JWT validation)
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # Authentication
    auth_mode: AuthMode = AuthMode.SUPABASE

    # Fixed-window rate limiting for the notes API
    enable_rate_limiting: bool = True
    notes_rate_limit_window_seconds: int = 900  # 15 minutes
    notes_rate_limit_max_requests: int = 100


settings = Settings()
