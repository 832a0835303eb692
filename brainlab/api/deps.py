"""
api/deps.py — Wiring between the cache registry and the services
=================================================================
build_services() is called once from the application lifespan; routes
reach the result through get_services().
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from fastapi import Request

from ..config import Settings, settings as default_settings
from ..feedback.service import FeedbackService
from ..nickname import NicknameValidator
from ..questions.pool import QuestionPool
from ..questions.selector import QuestionSelector
from ..questions.service import QuestionService
from ..rate_limit import SubmissionGuard
from ..results.ranking import LeaderboardCache
from ..results.service import ResultService
from ..session_store import SessionTracker, utc_now
from ..state import CacheRegistry


@dataclass
class Services:
    caches: CacheRegistry
    questions: QuestionService
    results: ResultService
    feedback: FeedbackService


def build_services(
    caches: CacheRegistry,
    cfg: Settings = default_settings,
    rng: Optional[random.Random] = None,
    nicknames: Optional[NicknameValidator] = None,
    now: Callable[[], datetime] = utc_now,
) -> Services:
    sessions = SessionTracker(caches.sessions, now)
    guard = SubmissionGuard(
        caches.cooldowns,
        caches.day_bans,
        caches.feedback,
        exempt_ips=cfg.rate_limit_exempt_ips,
        ban_timezone=timezone(timedelta(hours=cfg.ban_timezone_offset_hours)),
        now=now,
    )
    nicknames = nicknames or NicknameValidator()
    return Services(
        caches=caches,
        questions=QuestionService(
            pool=QuestionPool(caches.question_pool),
            selector=QuestionSelector(rng),
            sessions=sessions,
            guard=guard,
            nicknames=nicknames,
        ),
        results=ResultService(
            sessions=sessions,
            guard=guard,
            nicknames=nicknames,
            leaderboard=LeaderboardCache(caches.leaderboard),
            now=now,
        ),
        feedback=FeedbackService(guard, max_length=cfg.feedback_max_length),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services
