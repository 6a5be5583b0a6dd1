"""Retry service for calculating backoff delays."""
import random
from storyreel.core.enums import RetryPolicy


class RetryService:
    """Service for retry backoff calculations."""

    def calculate_delay(
        self,
        retry_count: int,
        retry_policy: RetryPolicy,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
    ) -> float:
        """
        Calculate the delay before the next attempt.

        Args:
            retry_count: Number of attempts already failed (0 for the first retry)
            retry_policy: Retry backoff policy (fixed, exponential, jitter)
            base_delay: Base delay in seconds
            max_delay: Maximum delay in seconds (for exponential)

        Returns:
            float: Delay in seconds
        """
        if retry_policy == RetryPolicy.FIXED:
            delay = base_delay

        elif retry_policy == RetryPolicy.EXPONENTIAL:
            # Exponential backoff: base_delay * 2^retry_count
            delay = min(base_delay * (2 ** retry_count), max_delay)

        elif retry_policy == RetryPolicy.JITTER:
            exponential_delay = min(base_delay * (2 ** retry_count), max_delay)
            # Add random jitter (0 to 50% of exponential delay)
            jitter = random.uniform(0, exponential_delay * 0.5)
            delay = exponential_delay + jitter

        else:
            delay = base_delay

        return delay

    def should_retry(self, retry_count: int, max_retries: int) -> bool:
        """
        Check if an operation should be retried.

        Args:
            retry_count: Current retry attempt number
            max_retries: Maximum retry attempts allowed

        Returns:
            bool: True if should retry, False otherwise
        """
        return retry_count < max_retries
