"""
results/ranking.py — Rank, percentile and leaderboard
======================================================
Ranks count results with a strictly greater score, so ties share the
better rank. A fresh submission is ranked against the population as it
was before the submission was inserted; a stored result is ranked
against today's population and drifts as more people take the test.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, List, Optional, Sequence

from ..ephemeral import EphemeralKeyStore
from ..repository import RankInfo

TOP_ENTRIES = 10
PERCENTILE_TARGETS = (30, 50, 70, 90)

_LEADERBOARD_KEY = "leaderboard"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class RankPosition:
    rank: int
    total_participants: int
    top_percent: float


def _position(higher_count: int, total_participants: int) -> RankPosition:
    rank = higher_count + 1
    top_percent = round_half_up(rank / total_participants * 1000) / 10
    return RankPosition(rank=rank, total_participants=total_participants, top_percent=top_percent)


def rank_new_submission(info: RankInfo) -> RankPosition:
    """Counts were taken before insert; add the submission itself."""
    return _position(info.higher_count, info.total + 1)


def rank_stored_result(info: RankInfo) -> RankPosition:
    """The result is already part of *info.total*."""
    return _position(info.higher_count, max(info.total, 1))


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    nickname: str
    score: int
    correct_count: int
    time_seconds: int
    estimated_iq: int


@dataclass(frozen=True)
class PercentileMarker:
    top_percent: int
    rank: int
    nickname: str
    score: int
    correct_count: int
    time_seconds: int
    estimated_iq: int


@dataclass(frozen=True)
class Leaderboard:
    top_entries: List[LeaderboardEntry] = field(default_factory=list)
    percentile_entries: List[PercentileMarker] = field(default_factory=list)
    total_count: int = 0


def marker_positions(total: int) -> List[tuple[int, int]]:
    """(target percent, 0-based position) pairs for the percentile markers.

    Positions always fall after the top block and inside the population;
    two targets landing on the same position yield one marker.
    """
    if total <= TOP_ENTRIES:
        return []
    seen: set[int] = set()
    out: List[tuple[int, int]] = []
    for pct in PERCENTILE_TARGETS:
        pos = round_half_up(total * pct / 100)
        pos = max(TOP_ENTRIES, min(total - 1, pos))
        if pos in seen:
            continue
        seen.add(pos)
        out.append((pct, pos))
    return out


def build_leaderboard(results: Sequence[Any]) -> Leaderboard:
    """*results* must already be deduplicated and sorted best-first."""
    total = len(results)
    top = [
        LeaderboardEntry(
            rank=i + 1,
            nickname=r.nickname,
            score=r.score,
            correct_count=r.correct_count,
            time_seconds=r.time_seconds,
            estimated_iq=r.estimated_iq,
        )
        for i, r in enumerate(results[:TOP_ENTRIES])
    ]
    markers = [
        PercentileMarker(
            top_percent=pct,
            rank=pos + 1,
            nickname=results[pos].nickname,
            score=results[pos].score,
            correct_count=results[pos].correct_count,
            time_seconds=results[pos].time_seconds,
            estimated_iq=results[pos].estimated_iq,
        )
        for pct, pos in marker_positions(total)
    ]
    return Leaderboard(top_entries=top, percentile_entries=markers, total_count=total)


class LeaderboardCache:
    """Cached leaderboard guarded by an invalidation generation.

    Every invalidation bumps the generation. A reader captures it before
    querying the population and passes it back to put(); a board built
    from a population read before the latest invalidation is dropped.
    """

    def __init__(self, store: EphemeralKeyStore[str, Leaderboard]) -> None:
        self._store = store
        self._lock = Lock()
        self._generation = 0

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def get(self) -> Leaderboard | None:
        return self._store.get(_LEADERBOARD_KEY)

    def put(self, board: Leaderboard, generation: Optional[int] = None) -> bool:
        """Cache *board* unless the cache was invalidated since *generation*."""
        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            self._store.put(_LEADERBOARD_KEY, board)
            return True

    def invalidate(self) -> None:
        with self._lock:
            self._generation += 1
            self._store.invalidate(_LEADERBOARD_KEY)
