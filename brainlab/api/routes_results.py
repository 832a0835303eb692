from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ..rate_limit import client_ip
from ..schemas import ApiResponse, LeaderboardOut, ResultOut, ResultRequest
from .deps import Services, get_services

router = APIRouter(prefix="/api/results", tags=["results"])


@router.post("", response_model=ApiResponse[ResultOut])
def submit_result(
    body: ResultRequest,
    request: Request,
    services: Services = Depends(get_services),
) -> ApiResponse[ResultOut]:
    """Score a finished attempt, rank it and store it.

    Rejected with 429 during the post-submission cooldown; a retry during
    the cooldown blocks the client for the rest of the day.
    """
    result = services.results.submit(
        nickname=body.nickname,
        answers=body.answers,
        session_token=body.session_token,
        ip=client_ip(request),
    )
    return ApiResponse.ok(result)


# Declared before /{share_token} so "ranking" is not taken for a token
@router.get("/ranking", response_model=ApiResponse[LeaderboardOut])
def get_ranking(services: Services = Depends(get_services)) -> ApiResponse[LeaderboardOut]:
    board = services.results.get_leaderboard()
    return ApiResponse.ok(LeaderboardOut.model_validate(board))


@router.get("/{share_token}", response_model=ApiResponse[ResultOut])
def get_result(
    share_token: str,
    services: Services = Depends(get_services),
) -> ApiResponse[ResultOut]:
    """Stored result by its share link, ranked against today's population."""
    return ApiResponse.ok(services.results.get_result_by_share_token(share_token))
