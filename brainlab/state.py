"""
state.py — Process-wide ephemeral state
========================================
Every in-memory store the service needs is owned by one CacheRegistry.
The registry is built once when the application starts, handed to the
components that need it, and cleared at shutdown. Nothing here survives
a restart and nothing is shared between worker processes.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Callable, List

from .config import Settings, settings as default_settings
from .ephemeral import EphemeralKeyStore

logger = logging.getLogger("brainlab.state")


@dataclass
class CacheRegistry:
    sessions: EphemeralKeyStore[str, datetime]
    cooldowns: EphemeralKeyStore[str, datetime]
    day_bans: EphemeralKeyStore[str, datetime]
    feedback: EphemeralKeyStore[str, datetime]
    question_pool: EphemeralKeyStore[str, List[Any]]
    leaderboard: EphemeralKeyStore[str, Any]

    @classmethod
    def from_settings(
        cls,
        cfg: Settings = default_settings,
        clock: Callable[[], float] = time.monotonic,
    ) -> "CacheRegistry":
        return cls(
            sessions=EphemeralKeyStore(
                cfg.session_ttl_minutes * 60, cfg.session_max_entries, clock
            ),
            cooldowns=EphemeralKeyStore(
                cfg.submit_cooldown_seconds, cfg.rate_limit_max_entries, clock
            ),
            day_bans=EphemeralKeyStore(
                cfg.day_ban_ttl_hours * 3600, cfg.rate_limit_max_entries, clock
            ),
            feedback=EphemeralKeyStore(
                cfg.feedback_window_minutes * 60, cfg.rate_limit_max_entries, clock
            ),
            question_pool=EphemeralKeyStore(cfg.question_cache_ttl_hours * 3600, 1, clock),
            leaderboard=EphemeralKeyStore(cfg.ranking_cache_ttl_seconds, 1, clock),
        )

    def close(self) -> None:
        """Drop every cached entry. Called on application shutdown."""
        for f in fields(self):
            getattr(self, f.name).clear()
        logger.info("Ephemeral caches cleared")
