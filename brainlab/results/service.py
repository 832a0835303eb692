"""
results/service.py — Submission, result lookup and leaderboard
===============================================================
Submission order matters:

1. Every check that can reject the request runs first (nickname, rate
   limit, session, answer set). A rejected submission changes nothing,
   except the rate limiter's own escalation on a retry during cooldown.
2. Score and rank are computed, then counters and the result row are
   written in one transaction.
3. Only after that transaction commits is the session spent, the
   cooldown armed and the leaderboard cache dropped. A failed save leaves
   the client free to retry with the same token.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, List, Sequence

from ..database import db_session
from ..errors import NotFoundError, RateLimitError, ValidationError
from ..models import Question, TestResult
from ..nickname import NicknameValidator
from ..rate_limit import SubmissionGuard
from ..repository import QuestionRepository, ResultRepository
from ..schemas import AnswerItem, QuestionFeedback, ResultOut
from ..session_store import SessionTracker, utc_now
from ..telemetry.logger import log_submission
from .ranking import (
    Leaderboard,
    LeaderboardCache,
    RankPosition,
    build_leaderboard,
    rank_new_submission,
    rank_stored_result,
)
from .scoring import NO_ANSWER, calculate_score, clamp_elapsed, estimate_iq, is_correct

logger = logging.getLogger("brainlab.results")

INVALID_SESSION_MESSAGE = "Invalid or expired session. Please restart the test."
UNKNOWN_QUESTION_MESSAGE = "The answers contain an unknown question ID."
DUPLICATE_QUESTION_MESSAGE = "Each question may be answered only once."
RESULT_NOT_FOUND_MESSAGE = "Result not found."


def _to_result_out(
    result: TestResult,
    position: RankPosition,
    feedback: List[QuestionFeedback] | None = None,
) -> ResultOut:
    return ResultOut(
        id=result.id,
        share_token=result.share_token,
        nickname=result.nickname,
        score=result.score,
        correct_count=result.correct_count,
        time_seconds=result.time_seconds,
        rank=position.rank,
        total_participants=position.total_participants,
        top_percent=position.top_percent,
        estimated_iq=result.estimated_iq,
        answer_feedback=feedback or [],
    )


def _answer_feedback(
    answers: Sequence[AnswerItem], by_id: Dict[int, Question]
) -> List[QuestionFeedback]:
    out = []
    for item in answers:
        q = by_id.get(item.question_id)
        correct_answer = q.answer if q is not None else NO_ANSWER
        out.append(
            QuestionFeedback(
                question_id=item.question_id,
                user_answer=item.answer,
                correct_answer=correct_answer,
                is_correct=is_correct(item.answer, correct_answer),
                category=q.category if q is not None else "",
                explanation=q.explanation if q is not None else None,
            )
        )
    return out


class ResultService:
    def __init__(
        self,
        sessions: SessionTracker,
        guard: SubmissionGuard,
        nicknames: NicknameValidator,
        leaderboard: LeaderboardCache,
        session_factory: Callable = db_session,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._sessions = sessions
        self._guard = guard
        self._nicknames = nicknames
        self._leaderboard = leaderboard
        self._session_factory = session_factory
        self._now = now

    def submit(
        self,
        nickname: str,
        answers: Sequence[AnswerItem],
        session_token: str,
        ip: str,
    ) -> ResultOut:
        self._nicknames.validate(nickname)

        reason = self._guard.submit_reject_reason(ip)
        if reason is not None:
            raise RateLimitError(reason)

        start = self._sessions.get_start_time(session_token)
        if start is None:
            raise ValidationError(INVALID_SESSION_MESSAGE)
        elapsed = clamp_elapsed(self._sessions.elapsed_seconds(start, self._now()))

        question_ids = [a.question_id for a in answers]
        if len(set(question_ids)) != len(question_ids):
            raise ValidationError(DUPLICATE_QUESTION_MESSAGE)

        with self._session_factory() as session:
            questions = QuestionRepository(session)
            results = ResultRepository(session)

            by_id = {q.id: q for q in questions.find_questions_by_ids(question_ids)}
            if len(by_id) != len(question_ids):
                raise ValidationError(UNKNOWN_QUESTION_MESSAGE)

            correct_ids = [
                a.question_id for a in answers
                if is_correct(a.answer, by_id[a.question_id].answer)
            ]
            score = calculate_score(
                correct_ids, {qid: q.difficulty for qid, q in by_id.items()}, elapsed
            )
            # Counted before insert; the new row is added back in by the formula
            position = rank_new_submission(results.rank_info(score))

            questions.increment_total_attempts(question_ids)
            questions.increment_correct_counts(correct_ids)
            saved = results.save_result(
                TestResult(
                    nickname=nickname,
                    score=score,
                    correct_count=len(correct_ids),
                    time_seconds=elapsed,
                    estimated_iq=estimate_iq(score),
                    ip_address=ip,
                )
            )

        # Committed: only now spend the session and arm the limiter
        self._sessions.invalidate(session_token)
        self._guard.record(ip)
        self._leaderboard.invalidate()
        log_submission(saved, position, answered=len(answers))

        return _to_result_out(saved, position, _answer_feedback(answers, by_id))

    def get_result_by_share_token(self, share_token: str) -> ResultOut:
        with self._session_factory() as session:
            results = ResultRepository(session)
            result = results.find_result_by_share_token(share_token)
            if result is None:
                raise NotFoundError(RESULT_NOT_FOUND_MESSAGE)
            position = rank_stored_result(results.rank_info(result.score))
        return _to_result_out(result, position)

    def get_leaderboard(self) -> Leaderboard:
        cached = self._leaderboard.get()
        if cached is not None:
            return cached
        generation = self._leaderboard.generation
        with self._session_factory() as session:
            population = ResultRepository(session).find_all_results_deduped_by_ip()
            board = build_leaderboard(population)
        if not self._leaderboard.put(board, generation):
            logger.debug("Leaderboard invalidated during rebuild; not cached")
        return board
