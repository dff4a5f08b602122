"""
Tests for reconnect backoff.
"""

import pytest

from pos_agent.retry import ReconnectBackoff, RetryConfig, calculate_delay_with_jitter


class TestRetryConfig:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"initial_delay": 0},
            {"initial_delay": 5, "max_delay": 1},
            {"backoff_base": 0.5},
            {"jitter_factor": 1.5},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            RetryConfig(**kwargs)


class TestDelay:
    def test_without_jitter_doubles_until_cap(self):
        config = RetryConfig(initial_delay=1, max_delay=30, jitter_factor=0)
        delays = [calculate_delay_with_jitter(n, config) for n in range(7)]
        assert delays == [1, 2, 4, 8, 16, 30, 30]

    def test_jitter_stays_in_range(self):
        config = RetryConfig(initial_delay=1, max_delay=30)
        for attempt in range(10):
            delay = calculate_delay_with_jitter(attempt, config)
            assert 0 <= delay <= 30

    def test_huge_attempt_does_not_overflow(self):
        assert calculate_delay_with_jitter(10_000, RetryConfig(jitter_factor=0)) == 30


class TestReconnectBackoff:
    def test_grows_and_resets(self):
        backoff = ReconnectBackoff(RetryConfig(initial_delay=1, max_delay=30, jitter_factor=0))

        assert [backoff.next_delay() for _ in range(3)] == [1, 2, 4]
        assert backoff.attempt == 3

        backoff.reset()
        assert backoff.attempt == 0
        assert backoff.next_delay() == 1
