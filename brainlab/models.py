from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import Integer, String, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


class Question(Base):
    """One item of the question bank. Only the two counters ever change."""

    __tablename__ = "questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    content: Mapped[str] = mapped_column(Text)
    options_json: Mapped[str] = mapped_column(Text)   # JSON list of option strings
    answer: Mapped[int] = mapped_column(Integer)      # index into options
    difficulty: Mapped[int] = mapped_column(Integer, index=True)
    order_num: Mapped[int] = mapped_column(Integer)
    category: Mapped[str] = mapped_column(String(20), index=True)

    # Aggregate counters, incremented in bulk after each accepted submission
    correct_count: Mapped[int] = mapped_column(Integer, default=0)
    total_attempts: Mapped[int] = mapped_column(Integer, default=0)

    explanation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    @property
    def options(self) -> List[str]:
        return json.loads(self.options_json or "[]")


class TestResult(Base):
    """Persisted outcome of one accepted quiz submission."""

    __tablename__ = "test_results"
    __test__ = False  # not a pytest class

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    share_token: Mapped[str] = mapped_column(
        String(36), unique=True, index=True, default=lambda: str(uuid.uuid4())
    )
    nickname: Mapped[str] = mapped_column(String(20))
    score: Mapped[int] = mapped_column(Integer, index=True)
    correct_count: Mapped[int] = mapped_column(Integer)
    time_seconds: Mapped[int] = mapped_column(Integer)
    estimated_iq: Mapped[int] = mapped_column(Integer)
    ip_address: Mapped[str] = mapped_column(String(45), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc), index=True)


class Feedback(Base):
    """Free-text feedback left by a visitor."""

    __tablename__ = "feedbacks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    content: Mapped[str] = mapped_column(Text)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc))
