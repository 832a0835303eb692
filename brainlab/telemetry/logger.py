from __future__ import annotations

import logging

from ..models import TestResult
from ..results.ranking import RankPosition

audit_log = logging.getLogger("brainlab.audit")


def log_submission(result: TestResult, position: RankPosition, answered: int) -> None:
    """
    Emit one structured audit record for an accepted submission.

    The fields travel as ``extra`` so the JSON formatter renders them as
    top-level keys, ready for log search.
    """
    audit_log.info(
        "Submission accepted",
        extra={
            "result_id": result.id,
            "share_token": result.share_token,
            "ip_address": result.ip_address,
            "score": result.score,
            "correct_count": result.correct_count,
            "answered": answered,
            "time_seconds": result.time_seconds,
            "estimated_iq": result.estimated_iq,
            "rank": position.rank,
            "total_participants": position.total_participants,
            "top_percent": position.top_percent,
        },
    )
