"""
ephemeral.py — In-process TTL cache with a capacity bound
==========================================================
Backs every piece of short-lived state in the service: quiz sessions,
submission cooldowns, day-bans, the feedback limiter and the cached
question pool / leaderboard.

Entries expire a fixed time after they were written. When the store is
full the oldest writes are evicted first, so the TTL is an upper bound on
an entry's lifetime, never a promise. One lock per store; there is no
atomicity across keys.
"""
from __future__ import annotations

import time
from collections import OrderedDict
from threading import Lock
from typing import Callable, Generic, Hashable, Optional, Tuple, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class EphemeralKeyStore(Generic[K, V]):
    """Thread-safe key → value store with expire-after-write semantics."""

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._lock = Lock()
        # key -> (expires_at, value), kept in write order
        self._entries: "OrderedDict[K, Tuple[float, V]]" = OrderedDict()

    def put(self, key: K, value: V) -> None:
        now = self._clock()
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = (now + self.ttl_seconds, value)
            self._evict(now)

    def get(self, key: K) -> Optional[V]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= now:
                del self._entries[key]
                return None
            return value

    def invalidate(self, key: K) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        now = self._clock()
        with self._lock:
            self._drop_expired(now)
            return len(self._entries)

    # Caller holds the lock for both helpers below.

    def _drop_expired(self, now: float) -> None:
        # Entries share one TTL, so write order is also expiry order.
        while self._entries:
            oldest_key, (expires_at, _) = next(iter(self._entries.items()))
            if expires_at > now:
                break
            del self._entries[oldest_key]

    def _evict(self, now: float) -> None:
        self._drop_expired(now)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
