from __future__ import annotations

from typing import Optional

from ..models import Question
from ..nickname import NicknameValidator
from ..rate_limit import SubmissionGuard
from ..results.ranking import round_half_up
from ..schemas import QuestionOut, QuestionSetOut
from ..session_store import SessionTracker
from .pool import QuestionPool
from .selector import QuestionSelector


def correct_rate(question: Question) -> Optional[float]:
    """Percentage of attempts answered correctly, one decimal; None if unattempted."""
    if not question.total_attempts:
        return None
    return round_half_up(question.correct_count / question.total_attempts * 1000) / 10


def to_question_out(question: Question) -> QuestionOut:
    return QuestionOut(
        id=question.id,
        content=question.content,
        options=question.options,
        difficulty=question.difficulty,
        order_num=question.order_num,
        category=question.category,
        correct_rate=correct_rate(question),
    )


class QuestionService:
    def __init__(
        self,
        pool: QuestionPool,
        selector: QuestionSelector,
        sessions: SessionTracker,
        guard: SubmissionGuard,
        nicknames: NicknameValidator,
    ) -> None:
        self._pool = pool
        self._selector = selector
        self._sessions = sessions
        self._guard = guard
        self._nicknames = nicknames

    def fetch_question_set(self) -> QuestionSetOut:
        """Draw a fresh question set and open a session for it."""
        questions = self._selector.select(self._pool.all())
        token = self._sessions.create()
        return QuestionSetOut(
            session_token=token,
            questions=[to_question_out(q) for q in questions],
        )

    def check_eligibility(self, ip: str) -> bool:
        return self._guard.can_submit(ip)

    def check_nickname(self, nickname: str) -> bool:
        self._nicknames.validate(nickname)
        return True
