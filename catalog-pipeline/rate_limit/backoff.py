"""Backoff policies for pacing and retrying page requests."""

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass

from config.constants import (
    BASE_BATCH_DELAY,
    DEFAULT_PAGE_RETRY_ATTEMPTS,
    FAILURE_MULTIPLIER_STEP,
    FAST_PATH_FACTOR,
    FAST_PATH_MIN_REQUESTS,
    FAST_PATH_SUCCESS_RATE,
    MAX_FAILURE_MULTIPLIER,
    MIN_BATCH_DELAY,
)
from core.types import RequestStats


class BackoffPolicy(ABC):
    """Abstract base for backoff policies.

    A backoff policy determines how long to wait between retry attempts.
    """

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Calculate delay for the next retry attempt.

        Args:
            attempt: The attempt number (0-indexed)

        Returns:
            Delay in seconds before the next attempt
        """
        ...

    @abstractmethod
    def max_attempts(self) -> int:
        """Maximum number of retry attempts allowed."""
        ...

    def should_retry(self, attempt: int) -> bool:
        """Check if another retry attempt should be made."""
        return attempt < self.max_attempts()


@dataclass
class ExponentialBackoff(BackoffPolicy):
    """Exponential backoff with optional jitter.

    delay = min(base * (multiplier ^ attempt) + jitter, max_delay)

    Example with defaults:
        attempt 0: 1s + jitter
        attempt 1: 2s + jitter
        attempt 2: 4s + jitter
    """

    base: float = 1.0  # Base delay in seconds
    multiplier: float = 2.0  # Exponential multiplier
    max_delay: float = 10.0  # Maximum delay
    jitter: float = 0.5  # Random jitter range (0 to this value)
    max_attempts_val: int = DEFAULT_PAGE_RETRY_ATTEMPTS  # Maximum retry attempts

    def next_delay(self, attempt: int) -> float:
        """Calculate exponential delay with jitter."""
        delay = min(self.base * (self.multiplier**attempt), self.max_delay)
        if self.jitter > 0:
            delay += random.uniform(0, self.jitter)
        return delay

    def max_attempts(self) -> int:
        return self.max_attempts_val


@dataclass
class AdaptiveBatchDelay:
    """Pause between page batches derived from the category's request stats.

    - failures in a row: base * min(consecutive * 2, 10)
    - more than 10 requests at >95% success: max(base * 0.5, 0.2)
    - otherwise: base

    Pure function of the stats; holds no state of its own.
    """

    base: float = BASE_BATCH_DELAY
    failure_step: int = FAILURE_MULTIPLIER_STEP
    max_multiplier: int = MAX_FAILURE_MULTIPLIER
    fast_path_min_requests: int = FAST_PATH_MIN_REQUESTS
    fast_path_success_rate: float = FAST_PATH_SUCCESS_RATE
    fast_path_factor: float = FAST_PATH_FACTOR
    min_delay: float = MIN_BATCH_DELAY

    def next_delay(self, stats: RequestStats) -> float:
        """Delay in seconds before the next batch."""
        if stats.consecutive_failures > 0:
            multiplier = min(stats.consecutive_failures * self.failure_step, self.max_multiplier)
            return self.base * multiplier

        if (
            stats.total > self.fast_path_min_requests
            and stats.success_rate > self.fast_path_success_rate
        ):
            return max(self.base * self.fast_path_factor, self.min_delay)

        return self.base


def page_retry_backoff(attempts: int = DEFAULT_PAGE_RETRY_ATTEMPTS) -> ExponentialBackoff:
    """Retry policy used when failed pages are re-fetched within a batch."""
    return ExponentialBackoff(
        base=1.0,
        multiplier=2.0,
        max_delay=10.0,
        jitter=0.5,
        max_attempts_val=attempts,
    )
