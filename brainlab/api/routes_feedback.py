from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ..rate_limit import client_ip
from ..schemas import ApiResponse, FeedbackRequest
from .deps import Services, get_services

router = APIRouter(prefix="/api/feedbacks", tags=["feedback"])


@router.post("", response_model=ApiResponse)
def submit_feedback(
    body: FeedbackRequest,
    request: Request,
    services: Services = Depends(get_services),
) -> ApiResponse:
    """Accept one piece of free-text feedback per client per hour."""
    services.feedback.submit_feedback(body.content, client_ip(request))
    return ApiResponse.ok()
