"""Unit tests for RetryStrategy."""

import pytest

from gensync.retry import RetryStrategy


class TestRetryStrategy:
    """Test retry logic."""

    @pytest.mark.asyncio
    async def test_retry_on_failure(self):
        attempts = []

        async def failing_operation():
            attempts.append(1)
            if len(attempts) < 3:
                raise ConnectionError("Not yet")
            return "success"

        retry = RetryStrategy(max_attempts=3, initial_delay=0.01)
        result = await retry.with_retry(failing_operation)

        assert result == "success"
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_give_up_after_max_attempts(self):
        async def always_fails():
            raise ConnectionError("Always fails")

        retry = RetryStrategy(max_attempts=3, initial_delay=0.01)

        with pytest.raises(ConnectionError, match="Always fails"):
            await retry.with_retry(always_fails)

    @pytest.mark.asyncio
    async def test_error_handler_called(self):
        errors = []

        async def failing_operation():
            raise ConnectionError("Failure")

        async def error_handler(e: Exception, attempt: int):
            errors.append((str(e), attempt))

        retry = RetryStrategy(max_attempts=3, initial_delay=0.01)

        with pytest.raises(ConnectionError):
            await retry.with_retry(failing_operation, error_handler)

        assert [attempt for _, attempt in errors] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_successful_first_attempt(self):
        async def immediate_success():
            return "success"

        retry = RetryStrategy(max_attempts=3)

        assert await retry.with_retry(immediate_success) == "success"

    def test_exponential_backoff(self):
        retry = RetryStrategy(max_attempts=4, initial_delay=1.0, backoff_factor=2.0, max_delay=100.0)

        assert retry._calculate_delay(0) == 1.0
        assert retry._calculate_delay(1) == 2.0
        assert retry._calculate_delay(2) == 4.0
        assert retry._calculate_delay(3) == 8.0

    def test_max_delay_enforced(self):
        retry = RetryStrategy(max_attempts=10, initial_delay=1.0, backoff_factor=2.0, max_delay=5.0)

        assert retry._calculate_delay(10) == 5.0

    @pytest.mark.asyncio
    async def test_retry_specific_exceptions(self):
        attempts = []

        async def operation():
            attempts.append(1)
            if len(attempts) < 2:
                raise ConnectionError("Retry this")
            raise TypeError("Don't retry this")

        retry = RetryStrategy(max_attempts=5, initial_delay=0.01)

        with pytest.raises(TypeError, match="Don't retry this"):
            await retry.with_retry(operation, retry_exceptions=(ConnectionError,))

        assert len(attempts) == 2

    def test_max_attempts_must_be_positive(self):
        with pytest.raises(ValueError):
            RetryStrategy(max_attempts=0)
