from fastapi import APIRouter, Depends, Query, Request

from ..config import settings
from ..rate_limit import client_ip, limiter
from ..schemas import ApiResponse, EligibilityOut, NicknameCheckOut, QuestionSetOut
from .deps import Services, get_services

router = APIRouter(prefix="/api/questions", tags=["questions"])


@router.get("", response_model=ApiResponse[QuestionSetOut])
@limiter.limit(settings.question_fetch_rate_limit)
def get_questions(
    request: Request,
    services: Services = Depends(get_services),
) -> ApiResponse[QuestionSetOut]:
    """Draw a fresh question set and open a timed session for it.

    The answer key is not included; each question carries its
    historical correct rate instead.
    """
    return ApiResponse.ok(services.questions.fetch_question_set())


@router.get("/eligibility", response_model=ApiResponse[EligibilityOut])
def check_eligibility(
    request: Request,
    services: Services = Depends(get_services),
) -> ApiResponse[EligibilityOut]:
    """Pre-flight check whether this client may submit right now. Read-only."""
    can_submit = services.questions.check_eligibility(client_ip(request))
    return ApiResponse.ok(EligibilityOut(can_submit=can_submit))


@router.get("/nickname-check", response_model=ApiResponse[NicknameCheckOut])
def check_nickname(
    nickname: str = Query(..., max_length=20),
    services: Services = Depends(get_services),
) -> ApiResponse[NicknameCheckOut]:
    services.questions.check_nickname(nickname)
    return ApiResponse.ok(NicknameCheckOut(valid=True))
