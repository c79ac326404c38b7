"""Pacing, batching and progress infrastructure for page collection."""

from .backoff import (
    AdaptiveBatchDelay,
    BackoffPolicy,
    ExponentialBackoff,
    page_retry_backoff,
)
from .progress import ProgressLogHandler, ProgressReporter, format_duration
from .scheduler import BatchResult, BatchScheduler, PageFetcher, partition_pages

__all__ = [
    # Backoff policies
    "AdaptiveBatchDelay",
    "BackoffPolicy",
    "ExponentialBackoff",
    "page_retry_backoff",
    # Progress reporting
    "ProgressLogHandler",
    "ProgressReporter",
    "format_duration",
    # Scheduling
    "BatchResult",
    "BatchScheduler",
    "PageFetcher",
    "partition_pages",
]
