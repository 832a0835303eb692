"""
pytest configuration – point the app at a throwaway SQLite file, create
tables once per run, and give every test clean tables plus fresh caches
driven by a controllable clock.
"""
import os

os.environ.setdefault("BRAINLAB_DATABASE_URL", "sqlite:///./brainlab_test.db")
os.environ.setdefault("BRAINLAB_QUESTION_FETCH_RATE_LIMIT", "1000/minute")
os.environ.setdefault("BRAINLAB_LOG_FORMAT", "text")

import json
import random
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete

from brainlab.database import Base, db_session, engine
from brainlab import models  # noqa: F401 – registers ORM mappings with Base.metadata
from brainlab.models import Feedback, Question, TestResult
from brainlab.main import app
from brainlab.api.deps import build_services
from brainlab.questions.selector import CATEGORY_ORDER
from brainlab.state import CacheRegistry


class FakeClock:
    """Drives both the monotonic TTL clock and the wall clock."""

    def __init__(self) -> None:
        self.monotonic = 1_000.0
        # 12:00 in UTC+9
        self.wall = datetime(2026, 3, 2, 3, 0, tzinfo=timezone.utc)

    def __call__(self) -> float:
        return self.monotonic

    def now(self) -> datetime:
        return self.wall

    def advance(self, seconds: float) -> None:
        self.monotonic += seconds
        self.wall += timedelta(seconds=seconds)


@pytest.fixture(autouse=True, scope="session")
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables():
    with db_session() as session:
        session.execute(delete(Feedback))
        session.execute(delete(TestResult))
        session.execute(delete(Question))
    yield


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def caches(clock) -> CacheRegistry:
    return CacheRegistry.from_settings(clock=clock)


@pytest.fixture
def services(caches, clock):
    return build_services(caches, rng=random.Random(1234), now=clock.now)


@pytest.fixture
def client(services):
    with TestClient(app) as c:
        app.state.services = services
        yield c


def add_question(
    session,
    category: str,
    difficulty: int,
    answer: int = 0,
    explanation: str | None = None,
) -> Question:
    q = Question(
        content=f"{category} question (level {difficulty})",
        options_json=json.dumps(["A", "B", "C", "D"]),
        answer=answer,
        difficulty=difficulty,
        order_num=0,
        category=category,
        correct_count=0,
        total_attempts=0,
        explanation=explanation,
    )
    session.add(q)
    session.flush()
    return q


@pytest.fixture
def question_bank():
    """Two questions per difficulty in every category; answer index 0."""
    with db_session() as session:
        bank = [
            add_question(session, category, difficulty, explanation=f"why {category}-{difficulty}")
            for category in CATEGORY_ORDER
            for difficulty in (1, 2, 3)
            for _ in range(2)
        ]
    return bank


@pytest.fixture
def make_question():
    """Factory: insert one question in its own transaction and return it."""
    def _make(category: str, difficulty: int, answer: int = 0) -> Question:
        with db_session() as session:
            return add_question(session, category, difficulty, answer=answer)
    return _make
