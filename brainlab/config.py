from __future__ import annotations

import sys
from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings


_LOOPBACK_ADDRESSES = {"127.0.0.1", "::1", "localhost"}


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./brainlab.db"
    log_sql: bool = False

    # Server
    environment: str = "development"
    log_level: str = "info"
    log_format: str = "json"
    allow_cors_origins: List[str] = ["*"]

    # Quiz sessions
    session_ttl_minutes: int = 30
    session_max_entries: int = 10_000

    # Submission guard
    submit_cooldown_seconds: int = 120
    day_ban_ttl_hours: int = 25
    ban_timezone_offset_hours: int = 9  # calendar day boundary for day-bans (KST)
    feedback_window_minutes: int = 60
    rate_limit_max_entries: int = 100_000
    rate_limit_exempt_ips: List[str] = []

    # Request throttling (slowapi syntax)
    question_fetch_rate_limit: str = "30/minute"

    # Caches
    question_cache_ttl_hours: int = 24
    ranking_cache_ttl_seconds: int = 60

    # Content rules
    badwords_path: str = ""
    feedback_max_length: int = 500

    @field_validator("rate_limit_exempt_ips")
    @classmethod
    def validate_exempt_ips(cls, v: List[str], info) -> List[str]:
        """Only loopback addresses may bypass the limiter outside development."""
        env = info.data.get("environment", "development")
        external = [ip for ip in v if ip not in _LOOPBACK_ADDRESSES]
        if env != "development" and external:
            print(
                "\n🚨 FATAL: BRAINLAB_RATE_LIMIT_EXEMPT_IPS contains non-loopback "
                f"addresses: {external}\n"
                "   The exemption list is for local development only.\n",
                file=sys.stderr,
            )
            raise ValueError(
                "Rate-limit exemptions must be loopback addresses outside development."
            )
        return v

    class Config:
        env_prefix = "BRAINLAB_"


@lru_cache
def get_settings() -> Settings:
    return Settings()


# Module-level singleton for convenience
settings = get_settings()
