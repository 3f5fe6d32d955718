"""
Name: Rate-limit Retry Tests

Responsibilities:
  - Validate exactly 1 + max_retries attempts on persistent rate-limits
  - Validate deterministic exponential backoff (1 s, 2 s, 4 s)
  - Validate fail-fast on non rate-limit errors
"""

from unittest.mock import MagicMock

import pytest

from compliance_backend.infrastructure.services.retry import (
    create_rate_limit_retry,
    is_rate_limit_error,
)


pytestmark = pytest.mark.unit


class _ApiError(Exception):
    def __init__(self, message: str, code: int | None = None, status: str | None = None):
        super().__init__(message)
        self.code = code
        self.status = status


def test_persistent_rate_limit_makes_four_attempts_with_backoff():
    sleeps: list[float] = []
    fn = MagicMock(side_effect=_ApiError("429 Too Many Requests", code=429))
    fn.__name__ = "generate_content"

    wrapped = create_rate_limit_retry(max_retries=3, base_delay=1, sleep=sleeps.append)(fn)

    with pytest.raises(_ApiError):
        wrapped()

    assert fn.call_count == 4
    assert sleeps == [1, 2, 4]


def test_rate_limit_then_success_returns_value():
    sleeps: list[float] = []
    fn = MagicMock(side_effect=[_ApiError("quota", code=429), "ok"])
    fn.__name__ = "generate_content"

    wrapped = create_rate_limit_retry(max_retries=3, base_delay=1, sleep=sleeps.append)(fn)

    assert wrapped() == "ok"
    assert fn.call_count == 2
    assert sleeps == [1]


def test_non_rate_limit_error_is_not_retried():
    sleeps: list[float] = []
    fn = MagicMock(side_effect=_ApiError("Internal error", code=500))
    fn.__name__ = "generate_content"

    wrapped = create_rate_limit_retry(max_retries=3, base_delay=1, sleep=sleeps.append)(fn)

    with pytest.raises(_ApiError):
        wrapped()

    assert fn.call_count == 1
    assert sleeps == []


def test_negative_retries_rejected():
    with pytest.raises(ValueError):
        create_rate_limit_retry(max_retries=-1, base_delay=1)


@pytest.mark.parametrize(
    "exc,expected",
    [
        (_ApiError("boom", code=429), True),
        (_ApiError("boom", code=503), False),
        (_ApiError("boom", status="RESOURCE_EXHAUSTED"), True),
        (RuntimeError("Quota exceeded for model"), True),
        (RuntimeError("rate limit reached"), True),
        (ValueError("bad json"), False),
    ],
)
def test_is_rate_limit_error(exc, expected):
    assert is_rate_limit_error(exc) is expected
