from __future__ import annotations

import logging
from typing import Callable, List

from ..database import db_session
from ..ephemeral import EphemeralKeyStore
from ..models import Question
from ..repository import QuestionRepository

logger = logging.getLogger("brainlab.questions")

_POOL_KEY = "all"


def load_question_pool() -> List[Question]:
    """Read the full question bank from the database."""
    with db_session() as session:
        return QuestionRepository(session).find_all_questions()


class QuestionPool:
    """The full question bank, cached for a long TTL.

    The bank changes rarely, so a stale pool only means stale
    correct-rate figures until the entry expires or is invalidated.
    """

    def __init__(
        self,
        store: EphemeralKeyStore[str, List[Question]],
        loader: Callable[[], List[Question]] = load_question_pool,
    ) -> None:
        self._store = store
        self._loader = loader

    def all(self) -> List[Question]:
        cached = self._store.get(_POOL_KEY)
        if cached is not None:
            return cached
        pool = self._loader()
        logger.info("Question pool loaded: %d questions", len(pool))
        self._store.put(_POOL_KEY, pool)
        return pool

    def invalidate(self) -> None:
        self._store.invalidate(_POOL_KEY)
