from __future__ import annotations

from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Response envelope
# ---------------------------------------------------------------------------

class ApiResponse(BaseModel, Generic[T]):
    """Every route answers with this shape, success or failure."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None) -> "ApiResponse":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, message: str) -> "ApiResponse":
        return cls(success=False, error=message)


# ---------------------------------------------------------------------------
# Questions
# ---------------------------------------------------------------------------

class QuestionOut(BaseModel):
    """A question as shown to the test taker; the answer key is withheld."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    content: str
    options: List[str]
    difficulty: int
    order_num: int
    category: str
    correct_rate: Optional[float] = Field(
        default=None,
        description="Share of attempts answered correctly (0.0–100.0); null until attempted.",
    )


class QuestionSetOut(BaseModel):
    session_token: str
    questions: List[QuestionOut]


class EligibilityOut(BaseModel):
    can_submit: bool


class NicknameCheckOut(BaseModel):
    valid: bool


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class AnswerItem(BaseModel):
    question_id: int
    answer: int = Field(..., description="Chosen option index, or -1 when unanswered.")


class ResultRequest(BaseModel):
    nickname: str = Field(..., max_length=20)
    answers: List[AnswerItem] = Field(..., min_length=1)
    session_token: str

    @field_validator("nickname", mode="before")
    @classmethod
    def nickname_not_blank(cls, v: Any) -> Any:
        # Stripped before the length limit applies
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("Please enter a nickname.")
        return v

    @field_validator("session_token")
    @classmethod
    def session_token_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("A session token is required.")
        return v


class QuestionFeedback(BaseModel):
    question_id: int
    user_answer: int
    correct_answer: int
    is_correct: bool
    category: str = ""
    explanation: Optional[str] = None


class ResultOut(BaseModel):
    id: int
    share_token: str
    nickname: str
    score: int
    correct_count: int
    time_seconds: int
    rank: int
    total_participants: int
    top_percent: float
    estimated_iq: int
    answer_feedback: List[QuestionFeedback] = Field(default_factory=list)


class RankingEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rank: int
    nickname: str
    score: int
    correct_count: int
    time_seconds: int
    estimated_iq: int


class PercentileEntryOut(RankingEntryOut):
    top_percent: int


class LeaderboardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    top_entries: List[RankingEntryOut]
    percentile_entries: List[PercentileEntryOut]
    total_count: int


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------

class FeedbackRequest(BaseModel):
    content: str = ""
