"""
session_store.py — Server-side anchors for quiz attempts
=========================================================
A session token is issued with every question set and maps to the moment
the set was handed out. Solve time is always measured from this anchor,
never from anything the client reports.

A token is spent only after the submission it belongs to has been saved.
If the save fails the token stays valid and the client can retry; once a
save succeeds any retry is rejected for lack of a session.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from .ephemeral import EphemeralKeyStore


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionTracker:
    def __init__(
        self,
        store: EphemeralKeyStore[str, datetime],
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._now = now

    def create(self) -> str:
        """Issue a fresh, unguessable token anchored at the current time."""
        token = str(uuid.uuid4())
        self._store.put(token, self._now())
        return token

    def get_start_time(self, token: str) -> Optional[datetime]:
        return self._store.get(token)

    def invalidate(self, token: str) -> None:
        self._store.invalidate(token)

    def elapsed_seconds(self, start: datetime, now: Optional[datetime] = None) -> int:
        """Whole seconds from *start* to *now* (negative if the clock went backwards)."""
        end = now or self._now()
        return int((end - start).total_seconds())
