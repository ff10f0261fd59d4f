"""Unit tests for the reconnection backoff policy."""

import pytest

from workplace_agents.coordination.backoff import calculate_backoff_delay


class TestCalculateBackoffDelay:
    """Test cases for calculate_backoff_delay."""

    def test_doubles_per_attempt(self):
        """Test delay doubles with each attempt."""
        assert calculate_backoff_delay(0, 1000, 30000) == 1000
        assert calculate_backoff_delay(1, 1000, 30000) == 2000
        assert calculate_backoff_delay(2, 1000, 30000) == 4000
        assert calculate_backoff_delay(4, 1000, 30000) == 16000

    def test_clamped_to_max(self):
        """Test delay never exceeds the ceiling."""
        assert calculate_backoff_delay(5, 1000, 30000) == 30000
        assert calculate_backoff_delay(10, 1000, 30000) == 30000

    def test_large_attempt(self):
        """Test very large attempts return the ceiling."""
        assert calculate_backoff_delay(10_000, 1000, 30000) == 30000

    def test_defaults(self):
        """Test default base and ceiling."""
        assert calculate_backoff_delay(0) == 1000
        assert calculate_backoff_delay(20) == 30000

    def test_monotonic(self):
        """Test delays never decrease as attempts grow."""
        delays = [calculate_backoff_delay(i, 250, 45000) for i in range(64)]
        assert delays == sorted(delays)
        assert all(0 <= d <= 45000 for d in delays)

    def test_zero_base(self):
        """Test a zero base gives no delay."""
        assert calculate_backoff_delay(3, 0, 30000) == 0

    def test_negative_attempt(self):
        """Test negative attempts are rejected."""
        with pytest.raises(ValueError):
            calculate_backoff_delay(-1)
