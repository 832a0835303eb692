from __future__ import annotations

from datetime import timedelta

from brainlab.session_store import SessionTracker


def _tracker(caches, clock) -> SessionTracker:
    return SessionTracker(caches.sessions, now=clock.now)


def test_create_returns_non_blank_token(caches, clock):
    token = _tracker(caches, clock).create()
    assert token and token.strip()


def test_tokens_never_collide(caches, clock):
    tracker = _tracker(caches, clock)
    tokens = {tracker.create() for _ in range(1000)}
    assert len(tokens) == 1000


def test_start_time_is_creation_time(caches, clock):
    tracker = _tracker(caches, clock)
    token = tracker.create()
    clock.advance(42)
    assert tracker.get_start_time(token) == clock.now() - timedelta(seconds=42)


def test_unknown_token_has_no_start_time(caches, clock):
    assert _tracker(caches, clock).get_start_time("non-existent-token") is None


def test_invalidate_spends_token(caches, clock):
    tracker = _tracker(caches, clock)
    token = tracker.create()
    assert tracker.get_start_time(token) is not None
    tracker.invalidate(token)
    assert tracker.get_start_time(token) is None


def test_invalidate_unknown_token_does_not_raise(caches, clock):
    _tracker(caches, clock).invalidate("unknown-token")


def test_session_expires_after_thirty_minutes(caches, clock):
    tracker = _tracker(caches, clock)
    token = tracker.create()
    clock.advance(30 * 60 - 1)
    assert tracker.get_start_time(token) is not None
    clock.advance(1)
    assert tracker.get_start_time(token) is None


def test_elapsed_seconds_is_whole_seconds(caches, clock):
    tracker = _tracker(caches, clock)
    start = clock.now()
    clock.advance(95.7)
    assert tracker.elapsed_seconds(start) == 95
