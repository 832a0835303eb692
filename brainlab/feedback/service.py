from __future__ import annotations

import logging
from typing import Callable

from ..config import settings
from ..database import db_session
from ..errors import RateLimitError, ValidationError
from ..models import Feedback
from ..rate_limit import FEEDBACK_MESSAGE, SubmissionGuard
from ..repository import FeedbackRepository

logger = logging.getLogger("brainlab.feedback")

EMPTY_FEEDBACK_MESSAGE = "Please enter your feedback."


class FeedbackService:
    def __init__(
        self,
        guard: SubmissionGuard,
        session_factory: Callable = db_session,
        max_length: int = settings.feedback_max_length,
    ) -> None:
        self._guard = guard
        self._session_factory = session_factory
        self._max_length = max_length

    def submit_feedback(self, content: str, ip: str) -> None:
        trimmed = (content or "").strip()
        if not trimmed:
            raise ValidationError(EMPTY_FEEDBACK_MESSAGE)
        if len(trimmed) > self._max_length:
            raise ValidationError(f"Feedback must be {self._max_length} characters or fewer.")
        if not self._guard.can_submit_feedback(ip):
            raise RateLimitError(FEEDBACK_MESSAGE)

        with self._session_factory() as session:
            FeedbackRepository(session).save_feedback(Feedback(content=trimmed, ip_address=ip))

        self._guard.record_feedback(ip)
        logger.info("Feedback received from %s (%d chars)", ip, len(trimmed))
