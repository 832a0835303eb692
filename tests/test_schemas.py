from __future__ import annotations

import pytest
from pydantic import ValidationError

from brainlab.schemas import ResultRequest


def _request(nickname):
    return ResultRequest(
        nickname=nickname,
        session_token="token",
        answers=[{"question_id": 1, "answer": 0}],
    )


def test_nickname_is_stripped_before_length_check():
    assert _request("  " + "a" * 20 + " ").nickname == "a" * 20


def test_nickname_over_twenty_after_strip_rejected():
    with pytest.raises(ValidationError):
        _request(" " + "a" * 21)


def test_blank_nickname_rejected():
    with pytest.raises(ValidationError) as exc:
        _request("   ")
    assert "Please enter a nickname." in str(exc.value)
