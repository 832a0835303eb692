"""
Tests for the TTL + capacity bounded key store that backs sessions,
rate-limit marks and the shared caches.

Run with: pytest tests/test_ephemeral.py -v
"""
from __future__ import annotations

import threading

import pytest

from brainlab.ephemeral import EphemeralKeyStore
from brainlab.state import CacheRegistry


def _store(clock, ttl: float = 60, max_entries: int = 100) -> EphemeralKeyStore:
    return EphemeralKeyStore(ttl, max_entries, clock)


# ---------------------------------------------------------------------------
# Basic contract
# ---------------------------------------------------------------------------

def test_get_returns_what_was_put(clock):
    store = _store(clock)
    store.put("a", 1)
    assert store.get("a") == 1


def test_get_missing_key_returns_none(clock):
    assert _store(clock).get("nope") is None


def test_last_write_wins(clock):
    store = _store(clock)
    store.put("a", 1)
    store.put("a", 2)
    assert store.get("a") == 2
    assert len(store) == 1


def test_invalidate_removes_entry(clock):
    store = _store(clock)
    store.put("a", 1)
    store.invalidate("a")
    assert store.get("a") is None


def test_invalidate_unknown_key_is_noop(clock):
    store = _store(clock)
    store.invalidate("never-there")
    assert len(store) == 0


def test_rejects_bad_configuration(clock):
    with pytest.raises(ValueError):
        EphemeralKeyStore(0, 10, clock)
    with pytest.raises(ValueError):
        EphemeralKeyStore(10, 0, clock)


# ---------------------------------------------------------------------------
# Expiry
# ---------------------------------------------------------------------------

def test_entry_expires_after_ttl(clock):
    store = _store(clock, ttl=30)
    store.put("a", 1)
    clock.advance(29)
    assert store.get("a") == 1
    clock.advance(1)
    assert store.get("a") is None


def test_rewrite_restarts_ttl(clock):
    store = _store(clock, ttl=30)
    store.put("a", 1)
    clock.advance(20)
    store.put("a", 2)
    clock.advance(20)
    assert store.get("a") == 2


def test_len_ignores_expired_entries(clock):
    store = _store(clock, ttl=10)
    store.put("old", 1)
    clock.advance(5)
    store.put("new", 2)
    clock.advance(6)
    assert len(store) == 1
    assert "new" in store
    assert "old" not in store


# ---------------------------------------------------------------------------
# Capacity
# ---------------------------------------------------------------------------

def test_oldest_write_evicted_when_full(clock):
    store = _store(clock, max_entries=2)
    store.put("a", 1)
    store.put("b", 2)
    store.put("c", 3)
    assert store.get("a") is None
    assert store.get("b") == 2
    assert store.get("c") == 3


def test_rewritten_key_counts_as_newest(clock):
    store = _store(clock, max_entries=2)
    store.put("a", 1)
    store.put("b", 2)
    store.put("a", 10)
    store.put("c", 3)
    assert store.get("b") is None
    assert store.get("a") == 10


def test_clear_drops_everything(clock):
    store = _store(clock)
    for i in range(5):
        store.put(i, i)
    store.clear()
    assert len(store) == 0


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------

def test_concurrent_writers_respect_capacity():
    store: EphemeralKeyStore[str, int] = EphemeralKeyStore(60, 500)

    def writer(prefix: str) -> None:
        for i in range(400):
            store.put(f"{prefix}-{i}", i)
            store.get(f"{prefix}-{i // 2}")

    threads = [threading.Thread(target=writer, args=(f"t{n}",)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(store) == 500


# ---------------------------------------------------------------------------
# Registry lifecycle
# ---------------------------------------------------------------------------

def test_registry_close_clears_all_stores(caches):
    caches.sessions.put("tok", "x")
    caches.cooldowns.put("1.2.3.4", "x")
    caches.leaderboard.put("leaderboard", "x")
    caches.close()
    assert len(caches.sessions) == 0
    assert len(caches.cooldowns) == 0
    assert len(caches.leaderboard) == 0


def test_registry_uses_configured_ttls(clock):
    caches = CacheRegistry.from_settings(clock=clock)
    assert caches.sessions.ttl_seconds == 30 * 60
    assert caches.day_bans.ttl_seconds == 25 * 3600
    assert caches.question_pool.max_entries == 1
