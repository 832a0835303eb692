"""
Tests for the feedback intake: trimming, length limits and the
one-per-hour window per client IP.

Run with: pytest tests/test_feedback.py -v
"""
from __future__ import annotations

from contextlib import contextmanager

import pytest
from sqlalchemy import select

from brainlab.database import db_session
from brainlab.errors import RateLimitError, ValidationError
from brainlab.feedback.service import EMPTY_FEEDBACK_MESSAGE, FeedbackService
from brainlab.models import Feedback
from brainlab.rate_limit import FEEDBACK_MESSAGE, SubmissionGuard

IP = "198.51.100.9"


def _stored() -> list[Feedback]:
    with db_session() as session:
        return list(session.execute(select(Feedback)).scalars().all())


@pytest.fixture
def guard(caches, clock) -> SubmissionGuard:
    return SubmissionGuard(caches.cooldowns, caches.day_bans, caches.feedback, now=clock.now)


def test_content_is_trimmed_before_save(services):
    services.feedback.submit_feedback("   the spatial ones are hard  \n", IP)

    rows = _stored()
    assert len(rows) == 1
    assert rows[0].content == "the spatial ones are hard"
    assert rows[0].ip_address == IP


@pytest.mark.parametrize("content", ["", "   ", "\n\t", None])
def test_blank_feedback_rejected(services, content):
    with pytest.raises(ValidationError) as exc:
        services.feedback.submit_feedback(content, IP)
    assert exc.value.message == EMPTY_FEEDBACK_MESSAGE
    assert _stored() == []


def test_length_limit_applies_after_trimming(services):
    services.feedback.submit_feedback("  " + "x" * 500 + "  ", IP)
    with pytest.raises(ValidationError):
        services.feedback.submit_feedback("y" * 501, "198.51.100.10")
    assert len(_stored()) == 1


def test_one_feedback_per_hour(services, clock):
    services.feedback.submit_feedback("first", IP)

    with pytest.raises(RateLimitError) as exc:
        services.feedback.submit_feedback("second", IP)
    assert exc.value.message == FEEDBACK_MESSAGE

    # other clients are unaffected
    services.feedback.submit_feedback("from elsewhere", "198.51.100.77")

    clock.advance(60 * 60)
    services.feedback.submit_feedback("an hour later", IP)
    assert len(_stored()) == 3


def test_rejected_content_does_not_start_window(services):
    with pytest.raises(ValidationError):
        services.feedback.submit_feedback("   ", IP)
    services.feedback.submit_feedback("now with words", IP)


def test_failed_save_does_not_start_window(guard):
    @contextmanager
    def failing_session():
        with db_session() as session:
            yield session
            raise RuntimeError("database unavailable")

    service = FeedbackService(guard, session_factory=failing_session)
    with pytest.raises(RuntimeError):
        service.submit_feedback("lost", IP)

    assert guard.can_submit_feedback(IP)
    assert _stored() == []


def test_custom_length_limit(guard):
    service = FeedbackService(guard, max_length=5)
    with pytest.raises(ValidationError):
        service.submit_feedback("too long", IP)
    service.submit_feedback("short", IP)
