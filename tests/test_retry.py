from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import pytest

from flipagent.retry import call_with_retry, is_auth_error, is_non_retryable, is_prompt_too_long


class FakeSleep:
    """Records requested delays instead of sleeping."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _flaky(failures: int, exc_factory=lambda: RuntimeError("overloaded"), result="ok"):
    calls = {"count": 0}

    async def request():
        calls["count"] += 1
        if calls["count"] <= failures:
            raise exc_factory()
        return result

    return request, calls


class TestClassifier:
    def test_prompt_too_long(self):
        assert is_prompt_too_long(Exception("prompt is too long: 210000 tokens > 200000 maximum"))

    def test_context_window(self):
        assert is_prompt_too_long(Exception("Input exceeds the context window"))

    def test_invalid_api_key(self):
        assert is_auth_error(Exception("Error code: 401 - invalid_api_key"))

    def test_invalid_x_api_key(self):
        assert is_auth_error(Exception("invalid x-api-key"))

    def test_authentication_error_type(self):
        response = MagicMock()
        response.status_code = 401
        exc = anthropic.AuthenticationError("denied", response=response, body=None)
        assert is_auth_error(exc)

    def test_generic_is_retryable(self):
        assert is_non_retryable(RuntimeError("Overloaded")) is False
        assert is_non_retryable(ConnectionError("reset by peer")) is False

    def test_non_retryable_covers_both(self):
        assert is_non_retryable(Exception("prompt is too long"))
        assert is_non_retryable(Exception("invalid_api_key"))


class TestCallWithRetry:
    @pytest.mark.asyncio
    async def test_success_first_try_no_sleep(self):
        sleep = FakeSleep()
        request, calls = _flaky(0)
        assert await call_with_retry(request, sleep=sleep) == "ok"
        assert calls["count"] == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_two_failures_then_success(self):
        sleep = FakeSleep()
        request, calls = _flaky(2)
        assert await call_with_retry(request, max_attempts=3, sleep=sleep) == "ok"
        assert calls["count"] == 3
        assert sleep.delays == [1.0, 2.0]
        assert sum(sleep.delays) * 1000 == 3000

    @pytest.mark.asyncio
    async def test_exhausted_raises_last_error(self):
        sleep = FakeSleep()
        request = AsyncMock(
            side_effect=[RuntimeError("first"), RuntimeError("second"), RuntimeError("third")]
        )
        with pytest.raises(RuntimeError, match="third"):
            await call_with_retry(request, max_attempts=3, sleep=sleep)
        assert request.await_count == 3
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_backoff_doubles(self):
        sleep = FakeSleep()
        request, _ = _flaky(3)
        assert await call_with_retry(request, max_attempts=4, base_delay=1.0, sleep=sleep) == "ok"
        assert sleep.delays == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    async def test_invalid_api_key_not_retried(self):
        sleep = FakeSleep()
        request, calls = _flaky(5, lambda: RuntimeError("Error code: 401 - invalid_api_key"))
        with pytest.raises(RuntimeError, match="invalid_api_key"):
            await call_with_retry(request, sleep=sleep)
        assert calls["count"] == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_prompt_too_long_not_retried(self):
        sleep = FakeSleep()
        request, calls = _flaky(5, lambda: RuntimeError("prompt is too long"))
        with pytest.raises(RuntimeError):
            await call_with_retry(request, sleep=sleep)
        assert calls["count"] == 1

    @pytest.mark.asyncio
    async def test_single_attempt(self):
        sleep = FakeSleep()
        request, calls = _flaky(1)
        with pytest.raises(RuntimeError):
            await call_with_retry(request, max_attempts=1, sleep=sleep)
        assert calls["count"] == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_logs_each_retry(self, caplog):
        request, _ = _flaky(2)
        with caplog.at_level("WARNING", logger="flipagent.retry"):
            await call_with_retry(request, sleep=FakeSleep())
        retries = [r for r in caplog.records if "retrying" in r.getMessage()]
        assert len(retries) == 2
        assert "attempt 1/3" in retries[0].getMessage()
        assert "2.0s" in retries[1].getMessage()
        assert retries[1].attempt == 2

    @pytest.mark.asyncio
    @patch("flipagent.retry.asyncio.sleep", new_callable=AsyncMock)
    async def test_default_sleep_is_asyncio(self, mock_sleep):
        request, _ = _flaky(1)
        assert await call_with_retry(request) == "ok"
        mock_sleep.assert_awaited_once_with(1.0)
