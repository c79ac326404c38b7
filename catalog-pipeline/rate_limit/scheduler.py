"""Batched, bounded-concurrency page fetching."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

from core.errors import CatalogError
from core.types import (
    Category,
    CategoryContext,
    PageResult,
    Record,
    SessionCredentials,
)
from observability import get_logger, log_context

from .backoff import AdaptiveBatchDelay, BackoffPolicy

logger = get_logger(__name__)

# on_batch(settled pages of the batch, last page number of the batch)
BatchCallback = Callable[[list[PageResult], int], Awaitable[None]]
SleepFunc = Callable[[float], Awaitable[None]]


class PageFetcher(Protocol):
    """Anything with CatalogClient.fetch_page's signature."""

    async def fetch_page(
        self,
        page_number: int,
        category: Category,
        credentials: SessionCredentials,
        page_size: int | None = None,
    ) -> PageResult: ...


def partition_pages(start: int, total_pages: int, batch_size: int) -> list[range]:
    """Split pages start..total_pages into contiguous ranges of <= batch_size.

    Example:
        partition_pages(2, 7, 3) -> [range(2, 5), range(5, 8)]
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    return [
        range(first, min(first + batch_size, total_pages + 1))
        for first in range(start, total_pages + 1, batch_size)
    ]


@dataclass
class BatchResult:
    """Result of scheduling a run of page batches."""

    pages: list[PageResult] = field(default_factory=list)  # ordered by page number
    dispatched: int = 0  # fetch_page calls, retries included

    @property
    def records(self) -> list[Record]:
        """Records of successful pages, in page order."""
        return [record for page in self.pages if page.ok for record in page.records]

    @property
    def failed_pages(self) -> list[int]:
        return [page.page_number for page in self.pages if not page.ok]

    @property
    def page_errors(self) -> dict[int, str]:
        return {page.page_number: str(page.error) for page in self.pages if not page.ok}

    @property
    def success_count(self) -> int:
        return sum(1 for page in self.pages if page.ok)

    @property
    def failure_count(self) -> int:
        return len(self.pages) - self.success_count


@dataclass
class BatchScheduler:
    """Fetches pages in sequential batches with adaptive pauses between them.

    Pages inside a batch run concurrently via asyncio.gather and every page
    settles before the batch ends. A failed page never aborts its batch.
    """

    client: PageFetcher
    delay_policy: AdaptiveBatchDelay = field(default_factory=AdaptiveBatchDelay)
    retry_policy: BackoffPolicy | None = None  # None: failed pages are skipped
    page_size: int | None = None
    sleep: SleepFunc = asyncio.sleep

    async def run_batches(
        self,
        total_pages: int,
        batch_size: int,
        context: CategoryContext,
        on_batch: BatchCallback | None = None,
        start_page: int = 2,
    ) -> BatchResult:
        """Fetch pages start_page..total_pages.

        Args:
            total_pages: Last page number to fetch
            batch_size: Pages per concurrent batch
            context: Category context (credentials and stats)
            on_batch: Awaited after every batch with its settled pages
            start_page: First page to fetch (page 1 is fetched by the caller)

        Returns:
            BatchResult with every page's outcome in ascending order
        """
        result = BatchResult()
        batches = partition_pages(start_page, total_pages, batch_size)

        for index, pages in enumerate(batches):
            with log_context(batch_index=index + 1, batch_size=len(pages)):
                settled = await self._run_one_batch(list(pages), context, result)
                result.pages.extend(settled)

                failed = [page for page in settled if not page.ok]
                for page in failed:
                    logger.warning(
                        f"Page {page.page_number} failed: {page.error}",
                        extra={"page_number": page.page_number, "error_kind": _kind(page)},
                    )
                logger.debug(
                    f"Batch pages {pages.start}-{pages.stop - 1}: "
                    f"{len(settled) - len(failed)} ok, {len(failed)} failed"
                )

                if on_batch is not None:
                    await on_batch(settled, pages.stop - 1)

                if index < len(batches) - 1:
                    delay = self.delay_policy.next_delay(context.stats)
                    await self.sleep(delay)

        return result

    async def _run_one_batch(
        self,
        pages: list[int],
        context: CategoryContext,
        result: BatchResult,
    ) -> list[PageResult]:
        settled = await self._dispatch(pages, context, result)
        by_page = {page.page_number: page for page in settled}

        if self.retry_policy is not None:
            attempt = 0
            while self.retry_policy.should_retry(attempt):
                retryable = [
                    page.page_number
                    for page in by_page.values()
                    if page.error is not None and page.error.is_retryable
                ]
                if not retryable:
                    break
                delay = self.retry_policy.next_delay(attempt)
                logger.info(
                    f"Retrying {len(retryable)} page(s) in {delay:.1f}s "
                    f"(attempt {attempt + 1}/{self.retry_policy.max_attempts()})"
                )
                await self.sleep(delay)
                for page in await self._dispatch(retryable, context, result):
                    by_page[page.page_number] = page
                attempt += 1

        return [by_page[number] for number in pages]

    async def _dispatch(
        self,
        pages: list[int],
        context: CategoryContext,
        result: BatchResult,
    ) -> list[PageResult]:
        credentials = context.require_credentials()
        result.dispatched += len(pages)

        outcomes = await asyncio.gather(
            *(
                self.client.fetch_page(number, context.category, credentials, self.page_size)
                for number in pages
            ),
            return_exceptions=True,
        )

        settled: list[PageResult] = []
        for number, outcome in zip(pages, outcomes):
            if isinstance(outcome, PageResult):
                page = outcome
            elif isinstance(outcome, CatalogError):
                page = PageResult(page_number=number, error=outcome)
            elif isinstance(outcome, Exception):
                page = PageResult(
                    page_number=number,
                    error=CatalogError(
                        f"Unexpected {type(outcome).__name__}: {outcome}",
                        category=context.category.path,
                        page=number,
                    ),
                )
            else:
                # CancelledError and friends must propagate
                raise outcome
            context.stats.record(page.ok)
            settled.append(page)

        return settled


def _kind(page: PageResult) -> str | None:
    return page.error.kind if page.error is not None else None
