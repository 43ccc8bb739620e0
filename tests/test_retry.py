"""Tests for rate-limit retry."""

from unittest.mock import AsyncMock

import anthropic
import httpx
import pytest

from ai_digest.errors import RateLimitError
from ai_digest.retry import call_with_rate_limit_retry


def _rate_limit_error() -> anthropic.RateLimitError:
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    response = httpx.Response(429, request=request)
    return anthropic.RateLimitError("rate limited", response=response, body=None)


@pytest.fixture
def no_sleep(monkeypatch: pytest.MonkeyPatch) -> AsyncMock:
    sleep = AsyncMock()
    monkeypatch.setattr("ai_digest.retry.asyncio.sleep", sleep)
    return sleep


async def test_returns_first_success(no_sleep: AsyncMock) -> None:
    fn = AsyncMock(return_value="ok")
    assert await call_with_rate_limit_retry(fn) == "ok"
    fn.assert_awaited_once()
    no_sleep.assert_not_awaited()


async def test_retries_with_exponential_backoff(no_sleep: AsyncMock) -> None:
    fn = AsyncMock(side_effect=[_rate_limit_error(), _rate_limit_error(), "ok"])
    assert await call_with_rate_limit_retry(fn, retries=3, base_delay=10.0) == "ok"
    assert fn.await_count == 3
    assert [c.args[0] for c in no_sleep.await_args_list] == [10.0, 20.0]


async def test_exhausted_retries_raise_rate_limit_error(no_sleep: AsyncMock) -> None:
    fn = AsyncMock(side_effect=_rate_limit_error())
    with pytest.raises(RateLimitError):
        await call_with_rate_limit_retry(fn, retries=3)
    assert fn.await_count == 3
    assert RateLimitError.status_code == 429


async def test_other_errors_propagate_immediately(no_sleep: AsyncMock) -> None:
    fn = AsyncMock(side_effect=ValueError("boom"))
    with pytest.raises(ValueError, match="boom"):
        await call_with_rate_limit_retry(fn)
    fn.assert_awaited_once()
    no_sleep.assert_not_awaited()
