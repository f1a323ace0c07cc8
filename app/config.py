"""
app/config.py — Pydantic BaseSettings configuration
Admin credentials, quota ceilings, topic store backend, burst rate limits.
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ────────────────────────────────────────────────────────────
    environment: str = "development"
    log_level: str = "INFO"
    port: int = 3001

    # ── Admin gate — fixed secret exchanged for a fixed bearer token ──────────
    admin_secret: str = "change-me-immediately"
    admin_token: str = "change-me-immediately"

    # ── Per-client lifetime quotas ────────────────────────────────────────────
    suggestion_limit: int = 3
    vote_limit: int = 5

    # ── Topic store ───────────────────────────────────────────────────────────
    # "memory" keeps topics in-process; "supabase" talks to PostgREST.
    store_backend: str = "memory"
    seed_demo_topics: bool = True
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_table: str = "temas"
    supabase_timeout_seconds: float = 10.0

    # ── CORS ──────────────────────────────────────────────────────────────────
    cors_allow_origins: list[str] = ["*"]

    # ── Burst rate limits (slowapi syntax) per endpoint category ─────────────
    request_rate_limits: dict[str, str] = {
        "read": "120/minute",
        "suggest": "20/minute",
        "vote": "30/minute",
        "admin": "30/minute",
        "login": "10/minute",
        "ping": "60/minute",
    }

    @field_validator("environment")
    @classmethod
    def validate_env(cls, v: str) -> str:
        allowed = {"development", "production", "testing"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("store_backend")
    @classmethod
    def validate_store_backend(cls, v: str) -> str:
        allowed = {"memory", "supabase"}
        v = v.lower()
        if v not in allowed:
            raise ValueError(f"store_backend must be one of {allowed}")
        return v

    @field_validator("suggestion_limit", "vote_limit")
    @classmethod
    def validate_limit(cls, v: int) -> int:
        if v < 0:
            raise ValueError("quota ceilings must be non-negative")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache()
def get_settings() -> Settings:
    """Return cached Settings instance. Use this everywhere."""
    return Settings()
