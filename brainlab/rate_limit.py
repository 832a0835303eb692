"""
rate_limit.py — Per-client submission limits
=============================================
Two layers protect the service:

* slowapi throttles raw request rate on the question-fetch endpoint,
  which mints a session token on every call.
* SubmissionGuard enforces the quiz submission policy per client IP:
  a short cooldown after every accepted submission, escalating to a ban
  for the rest of the calendar day when the client retries during the
  cooldown. Feedback has its own one-per-window limiter.

The client IP is the only actor key. It is spoofable and shared behind
NAT; the limits are a deterrent, not an identity system.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Iterable, Optional

from fastapi import Request
from slowapi import Limiter

from .ephemeral import EphemeralKeyStore
from .session_store import utc_now

logger = logging.getLogger("brainlab.rate_limit")

COOLDOWN_MESSAGE = "Please wait a moment and try again."
DAY_BAN_MESSAGE = "Too many submissions today. Please try again tomorrow."
FEEDBACK_MESSAGE = "Feedback can be submitted once per hour."


def client_ip(request: Request) -> str:
    """Resolve the caller's address, preferring reverse-proxy headers."""
    real_ip = request.headers.get("X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded and forwarded.strip():
        return forwarded.split(",")[0].strip()

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


limiter = Limiter(key_func=client_ip)


# ---------------------------------------------------------------------------
# Submission state machine
# ---------------------------------------------------------------------------

class GuardState(str, Enum):
    CLEAR = "clear"
    COOLDOWN = "cooldown"
    DAY_BANNED = "day_banned"


class GuardEvent(str, Enum):
    ATTEMPT = "attempt"  # a submission reached the authoritative check
    RECORD = "record"    # a submission was saved


def transition(state: GuardState, event: GuardEvent) -> GuardState:
    """Next state for *state* after *event*.

    Retrying while in cooldown is the only escalation; a day-ban is never
    left through a transition, only by expiry of the ban mark.
    """
    if state is GuardState.DAY_BANNED:
        return GuardState.DAY_BANNED
    if event is GuardEvent.RECORD:
        return GuardState.COOLDOWN
    if state is GuardState.COOLDOWN:
        return GuardState.DAY_BANNED
    return GuardState.CLEAR


_REJECT_REASONS = {
    GuardState.CLEAR: None,
    GuardState.COOLDOWN: COOLDOWN_MESSAGE,
    GuardState.DAY_BANNED: DAY_BAN_MESSAGE,
}


class SubmissionGuard:
    def __init__(
        self,
        cooldowns: EphemeralKeyStore[str, datetime],
        day_bans: EphemeralKeyStore[str, datetime],
        feedback: EphemeralKeyStore[str, datetime],
        exempt_ips: Iterable[str] = (),
        ban_timezone: timezone = timezone(timedelta(hours=9)),
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._cooldowns = cooldowns
        self._day_bans = day_bans
        self._feedback = feedback
        self._exempt = frozenset(exempt_ips)
        self._ban_timezone = ban_timezone
        self._now = now

    def _day_key(self, ip: str) -> str:
        day = self._now().astimezone(self._ban_timezone).date().isoformat()
        return f"{ip}:{day}"

    def state(self, ip: str) -> GuardState:
        if self._day_key(ip) in self._day_bans:
            return GuardState.DAY_BANNED
        if ip in self._cooldowns:
            return GuardState.COOLDOWN
        return GuardState.CLEAR

    def _enter(self, ip: str, previous: GuardState, nxt: GuardState) -> None:
        if nxt is GuardState.COOLDOWN:
            self._cooldowns.put(ip, self._now())
        elif nxt is GuardState.DAY_BANNED and previous is not GuardState.DAY_BANNED:
            self._day_bans.put(self._day_key(ip), self._now())
            logger.warning("Submission retry during cooldown; day-ban applied to %s", ip)

    # ── Quiz submissions ────────────────────────────────────────────────

    def can_submit(self, ip: str) -> bool:
        """Read-only eligibility probe; never escalates."""
        if ip in self._exempt:
            return True
        return self.state(ip) is GuardState.CLEAR

    def submit_reject_reason(self, ip: str) -> Optional[str]:
        """Authoritative check at submission time.

        Returns the rejection message, or None when the submission may
        proceed. A retry during cooldown escalates to a day-ban.
        """
        if ip in self._exempt:
            return None
        current = self.state(ip)
        self._enter(ip, current, transition(current, GuardEvent.ATTEMPT))
        return _REJECT_REASONS[current]

    def record(self, ip: str) -> None:
        """Arm the cooldown. Call only once the submission is saved."""
        if ip in self._exempt:
            return
        current = self.state(ip)
        self._enter(ip, current, transition(current, GuardEvent.RECORD))

    # ── Feedback ────────────────────────────────────────────────────────

    def can_submit_feedback(self, ip: str) -> bool:
        if ip in self._exempt:
            return True
        return ip not in self._feedback

    def record_feedback(self, ip: str) -> None:
        if ip in self._exempt:
            return
        self._feedback.put(ip, self._now())
