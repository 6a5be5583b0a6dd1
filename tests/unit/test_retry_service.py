"""Unit tests for retry backoff calculations."""
import pytest
from storyreel.services.retry_service import RetryService
from storyreel.core.enums import RetryPolicy


class TestRetryService:
    """Test retry backoff calculations."""

    def test_fixed_backoff_is_constant(self):
        """Test fixed backoff returns base delay regardless of retry count."""
        service = RetryService()

        assert service.calculate_delay(0, RetryPolicy.FIXED, base_delay=30) == 30
        assert service.calculate_delay(3, RetryPolicy.FIXED, base_delay=30) == 30

    def test_exponential_backoff_increases(self):
        """Test exponential backoff doubles with each retry."""
        service = RetryService()

        delays = [
            service.calculate_delay(n, RetryPolicy.EXPONENTIAL, base_delay=10)
            for n in range(4)
        ]

        # 10 * 2^3 = 80 is capped at the default max_delay of 60
        assert delays == [10, 20, 40, 60]

    def test_exponential_backoff_respects_max_delay(self):
        """Test exponential backoff is capped at max_delay."""
        service = RetryService()

        delay = service.calculate_delay(
            10, RetryPolicy.EXPONENTIAL, base_delay=1, max_delay=5
        )

        assert delay == 5

    def test_jitter_backoff_within_bounds(self):
        """Test jitter adds at most half of the exponential delay."""
        service = RetryService()

        for _ in range(20):
            delay = service.calculate_delay(2, RetryPolicy.JITTER, base_delay=1)
            assert 4 <= delay <= 6

    @pytest.mark.parametrize(
        "retry_count,max_retries,expected",
        [(0, 3, True), (2, 3, True), (3, 3, False), (0, 0, False)],
    )
    def test_should_retry(self, retry_count, max_retries, expected):
        """Test should_retry compares attempts against the maximum."""
        service = RetryService()

        assert service.should_retry(retry_count, max_retries) is expected
