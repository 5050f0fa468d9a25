"""Tests for retry utilities."""

from unittest.mock import Mock

import pytest

from retry import RetryConfig, call_with_retry


class TestRetryConfig:
    """Tests for RetryConfig."""

    def test_default_config(self):
        """Test default retry configuration."""
        config = RetryConfig()
        assert config.max_attempts == 3
        assert config.base_delay == 1.0
        assert config.max_delay == 30.0

    def test_calculate_delay_exponential(self):
        """Test exponential backoff calculation."""
        config = RetryConfig(base_delay=1.0, exponential_base=2.0, jitter=False)

        assert config.calculate_delay(0) == 1.0
        assert config.calculate_delay(1) == 2.0
        assert config.calculate_delay(2) == 4.0

    def test_calculate_delay_max_cap(self):
        """Test delay is capped at max_delay."""
        config = RetryConfig(base_delay=10.0, max_delay=30.0, jitter=False)

        assert config.calculate_delay(5) == 30.0

    def test_rejects_zero_attempts(self):
        """Test at least one attempt is required."""
        with pytest.raises(ValueError):
            RetryConfig(max_attempts=0)


class TestCallWithRetry:
    """Tests for call_with_retry."""

    def test_success_no_retry(self):
        """Test successful call doesn't retry."""
        func = Mock(return_value="ok")
        sleep = Mock()

        assert call_with_retry(func, RetryConfig(max_attempts=3), sleep=sleep) == "ok"
        assert func.call_count == 1
        sleep.assert_not_called()

    def test_default_is_single_attempt(self):
        """Test no config means exactly one attempt."""
        func = Mock(side_effect=ValueError("nope"))

        with pytest.raises(ValueError):
            call_with_retry(func, sleep=Mock())

        assert func.call_count == 1

    def test_retries_until_success(self):
        """Test retryable failures are repeated."""
        func = Mock(side_effect=[ValueError("1"), ValueError("2"), "ok"])
        sleep = Mock()
        config = RetryConfig(max_attempts=3, jitter=False, retryable_exceptions=(ValueError,))

        assert call_with_retry(func, config, sleep=sleep) == "ok"
        assert func.call_count == 3
        assert sleep.call_count == 2

    def test_each_retry_is_logged(self, caplog):
        """Test every repeated attempt logs a warning with its delay."""
        func = Mock(side_effect=[ValueError("1"), "ok"], __name__="verify")
        config = RetryConfig(max_attempts=2, base_delay=0.5, jitter=False, retryable_exceptions=(ValueError,))
        sleep = Mock()

        assert call_with_retry(func, config, sleep=sleep) == "ok"

        sleep.assert_called_once_with(0.5)
        assert "Attempt 1/2 failed for verify" in caplog.text

    def test_raises_last_exception_when_exhausted(self):
        """Test the final failure propagates."""
        func = Mock(side_effect=[ValueError("first"), ValueError("last")])
        config = RetryConfig(max_attempts=2, retryable_exceptions=(ValueError,))

        with pytest.raises(ValueError, match="last"):
            call_with_retry(func, config, sleep=Mock())

    def test_non_retryable_propagates_immediately(self):
        """Test exceptions outside the retryable set are not repeated."""
        func = Mock(side_effect=KeyError("k"))
        config = RetryConfig(max_attempts=3, retryable_exceptions=(ValueError,))

        with pytest.raises(KeyError):
            call_with_retry(func, config, sleep=Mock())

        assert func.call_count == 1
