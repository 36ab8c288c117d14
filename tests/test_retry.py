import logging
from unittest.mock import AsyncMock, call, patch

import pytest

from localmux.retry import compute_delay, with_retry


class TestWithRetry:

    @pytest.mark.asyncio
    async def test_succeeds_after_two_failures(self):
        operation = AsyncMock(side_effect=[RuntimeError("boom"), RuntimeError("boom"), "ok"])

        with patch("localmux.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
            result = await with_retry(operation, max_attempts=3, base_delay=0.1)

        assert result == "ok"
        assert operation.await_count == 3
        assert sleep.await_args_list == [call(0.1), call(0.2)]

    @pytest.mark.asyncio
    async def test_raises_last_error_after_max_attempts(self):
        errors = [ConnectionError(f"attempt {i}") for i in range(1, 5)]
        operation = AsyncMock(side_effect=errors)

        with patch("localmux.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
            with pytest.raises(ConnectionError, match="attempt 4"):
                await with_retry(operation, max_attempts=4, base_delay=0.5)

        assert operation.await_count == 4
        # No wait after the final attempt
        assert sleep.await_args_list == [call(0.5), call(1.0), call(2.0)]

    @pytest.mark.asyncio
    async def test_flat_delay(self):
        operation = AsyncMock(side_effect=ValueError("nope"))

        with patch("localmux.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
            with pytest.raises(ValueError):
                await with_retry(operation, max_attempts=3, base_delay=0.25, exponential_backoff=False)

        assert sleep.await_args_list == [call(0.25), call(0.25)]

    @pytest.mark.asyncio
    async def test_single_attempt_does_not_sleep(self):
        operation = AsyncMock(side_effect=RuntimeError("boom"))

        with patch("localmux.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
            with pytest.raises(RuntimeError):
                await with_retry(operation, max_attempts=1, base_delay=1.0)

        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_logs_each_failure_with_context(self, caplog):
        operation = AsyncMock(side_effect=[RuntimeError("flaky"), "done"])

        with patch("localmux.retry.asyncio.sleep", new_callable=AsyncMock):
            with caplog.at_level(logging.WARNING, logger="localmux.retry"):
                await with_retry(operation, max_attempts=2, base_delay=0, context="TTS playback")

        assert "TTS playback" in caplog.text
        assert "attempt 1/2" in caplog.text

    @pytest.mark.asyncio
    async def test_reraises_the_original_exception_object(self):
        error = TimeoutError("backend timed out")
        operation = AsyncMock(side_effect=error)

        with patch("localmux.retry.asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(TimeoutError) as excinfo:
                await with_retry(operation, max_attempts=2, base_delay=0.1)

        assert excinfo.value is error

    @pytest.mark.asyncio
    async def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError, match="max_attempts"):
            await with_retry(AsyncMock(), max_attempts=0, base_delay=1.0)


def test_compute_delay():
    assert [compute_delay(1.0, attempt, True) for attempt in (1, 2, 3)] == [1.0, 2.0, 4.0]
    assert compute_delay(1.0, 3, False) == 1.0
