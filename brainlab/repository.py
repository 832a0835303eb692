"""
repository.py — Storage access for questions, results and feedback
===================================================================
Thin repositories bound to one SQLAlchemy session. The caller owns the
transaction (see database.db_session), so a submission's counter updates
and result insert commit or roll back together.

Question counters are only ever changed with bulk UPDATE statements so
concurrent submissions touching the same question never lose an update.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from .models import Feedback, Question, TestResult


@dataclass(frozen=True)
class RankInfo:
    """Population snapshot used to rank a score."""
    higher_count: int  # results with a strictly greater score
    total: int         # all stored results


class QuestionRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def find_all_questions(self) -> List[Question]:
        stmt = select(Question).order_by(Question.order_num.asc(), Question.id.asc())
        return list(self.session.execute(stmt).scalars().all())

    def find_questions_by_ids(self, ids: Iterable[int]) -> List[Question]:
        ids = list(set(ids))
        if not ids:
            return []
        stmt = select(Question).where(Question.id.in_(ids))
        return list(self.session.execute(stmt).scalars().all())

    def increment_total_attempts(self, ids: Iterable[int]) -> None:
        ids = list(set(ids))
        if not ids:
            return
        self.session.execute(
            update(Question)
            .where(Question.id.in_(ids))
            .values(total_attempts=Question.total_attempts + 1)
            .execution_options(synchronize_session=False)
        )

    def increment_correct_counts(self, ids: Iterable[int]) -> None:
        ids = list(set(ids))
        if not ids:
            return
        self.session.execute(
            update(Question)
            .where(Question.id.in_(ids))
            .values(correct_count=Question.correct_count + 1)
            .execution_options(synchronize_session=False)
        )


class ResultRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def count_results_with_higher_score(self, score: int) -> int:
        stmt = select(func.count(TestResult.id)).where(TestResult.score > score)
        return self.session.execute(stmt).scalar_one() or 0

    def count_all_results(self) -> int:
        return self.session.execute(select(func.count(TestResult.id))).scalar_one() or 0

    def rank_info(self, score: int) -> RankInfo:
        return RankInfo(
            higher_count=self.count_results_with_higher_score(score),
            total=self.count_all_results(),
        )

    def save_result(self, result: TestResult) -> TestResult:
        self.session.add(result)
        self.session.flush()
        return result

    def find_result_by_share_token(self, token: str) -> Optional[TestResult]:
        stmt = select(TestResult).where(TestResult.share_token == token)
        return self.session.execute(stmt).scalar_one_or_none()

    def find_all_results_deduped_by_ip(self) -> List[TestResult]:
        """Best result per submitting IP, sorted by score desc then time asc."""
        ranked = (
            select(
                TestResult.id.label("id"),
                func.row_number()
                .over(
                    partition_by=TestResult.ip_address,
                    order_by=(
                        TestResult.score.desc(),
                        TestResult.time_seconds.asc(),
                        TestResult.id.asc(),
                    ),
                )
                .label("rn"),
            )
            .subquery()
        )
        stmt = (
            select(TestResult)
            .join(ranked, ranked.c.id == TestResult.id)
            .where(ranked.c.rn == 1)
            .order_by(
                TestResult.score.desc(),
                TestResult.time_seconds.asc(),
                TestResult.id.asc(),
            )
        )
        return list(self.session.execute(stmt).scalars().all())


class FeedbackRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def save_feedback(self, feedback: Feedback) -> Feedback:
        self.session.add(feedback)
        self.session.flush()
        return feedback
