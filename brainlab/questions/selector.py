"""
questions/selector.py — Builds the question set for one attempt
================================================================
The structure of a set is fixed: categories always appear in the same
order, and each contributes three questions in ascending difficulty.
Only the leaves are random: which item is picked from each difficulty
bucket, and which items fill a category whose buckets are incomplete.
"""
from __future__ import annotations

import random
from collections import defaultdict
from typing import Dict, List, Optional, Protocol, Sequence, TypeVar

# Pacing order of cognitive domains within a set. Not alphabetical.
CATEGORY_ORDER: List[str] = ["numeric", "verbal", "reflection", "spatial", "pattern"]

DIFFICULTY_LEVELS = (1, 2, 3)
PER_CATEGORY = 3


class _Selectable(Protocol):
    category: str
    difficulty: int


Q = TypeVar("Q", bound=_Selectable)


class QuestionSelector:
    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    def select(self, pool: Sequence[Q]) -> List[Q]:
        """Pick up to three questions per category, category-major.

        Categories missing from *pool* are skipped; the set simply gets
        shorter.
        """
        by_category: Dict[str, List[Q]] = defaultdict(list)
        for q in pool:
            by_category[q.category].append(q)

        selected: List[Q] = []
        for category in CATEGORY_ORDER:
            questions = by_category.get(category)
            if not questions:
                continue
            selected.extend(self._pick_category(questions))
        return selected

    def _pick_category(self, questions: List[Q]) -> List[Q]:
        picked: List[Q] = []
        for level in DIFFICULTY_LEVELS:
            bucket = [q for q in questions if q.difficulty == level]
            if bucket:
                picked.append(self._rng.choice(bucket))

        if len(picked) < PER_CATEGORY:
            remaining = [q for q in questions if not any(q is p for p in picked)]
            need = min(PER_CATEGORY - len(picked), len(remaining))
            picked.extend(self._rng.sample(remaining, need))

        # sorted() is stable, so fill-ins keep their draw order among equals
        return sorted(picked, key=lambda q: q.difficulty)
