from __future__ import annotations

from typing import Iterable, Mapping, Optional

NO_ANSWER = -1  # sent by the client when a question timed out unanswered

DIFFICULTY_POINTS = {1: 50, 2: 100, 3: 150}
DEFAULT_POINTS = 100

MAX_ELAPSED_SECONDS = 600
BONUS_WINDOW_SECONDS = 300
BONUS_PER_SECOND = 2

MIN_IQ = 75
MAX_IQ = 150
IQ_SCORE_STEP = 25


def is_correct(answer: int, correct_index: Optional[int]) -> bool:
    if answer == NO_ANSWER or correct_index is None:
        return False
    return answer == correct_index


def difficulty_points(difficulty: Optional[int]) -> int:
    return DIFFICULTY_POINTS.get(difficulty, DEFAULT_POINTS)


def clamp_elapsed(elapsed_seconds: int) -> int:
    return max(0, min(MAX_ELAPSED_SECONDS, elapsed_seconds))


def time_bonus(elapsed_seconds: int) -> int:
    """Up to 600 points for an instant solve, nothing from 300 s on."""
    elapsed = clamp_elapsed(elapsed_seconds)
    return max(0, (BONUS_WINDOW_SECONDS - elapsed) * BONUS_PER_SECOND)


def calculate_score(
    correct_ids: Iterable[int],
    difficulty_by_id: Mapping[int, int],
    elapsed_seconds: int,
) -> int:
    base = sum(difficulty_points(difficulty_by_id.get(qid)) for qid in correct_ids)
    return base + time_bonus(elapsed_seconds)


def estimate_iq(score: int) -> int:
    return max(MIN_IQ, min(MAX_IQ, MIN_IQ + score // IQ_SCORE_STEP))
