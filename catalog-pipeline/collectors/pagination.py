"""Paginates one category: page 1 alone, the rest in scheduled batches."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path

from core.types import CategoryContext, CollectionResult, PageResult, Record
from observability.logger import get_logger, log_context
from rate_limit.progress import ProgressReporter
from rate_limit.scheduler import BatchScheduler, PageFetcher
from storage.json_storage import SizeBoundedWriter

logger = get_logger(__name__)


@dataclass
class PaginationController:
    """Collects every page of a category.

    Page 1 determines the page count and must succeed; its error aborts
    the category. Later pages go through the BatchScheduler and failed
    ones are left out of the result (not retried here).

    Every settled batch is pushed to the progress reporter and, when
    `progressive_path` is set, appended to that JSON file family.
    """

    client: PageFetcher
    scheduler: BatchScheduler
    writer: SizeBoundedWriter | None = None
    reporter: ProgressReporter | None = None
    progressive_path: Path | None = None
    page_size: int | None = None

    async def collect_all(self, context: CategoryContext, batch_size: int) -> CollectionResult:
        """Fetch all pages of `context.category`.

        Args:
            context: Category context (credentials and stats)
            batch_size: Pages per concurrent batch

        Returns:
            CollectionResult with records in page order

        Raises:
            CatalogError: page 1 failed
        """
        credentials = context.require_credentials()

        with log_context(phase="paginate"):
            first = await self.client.fetch_page(
                1, context.category, credentials, self.page_size
            )
            context.stats.record(first.ok)
            if first.error is not None:
                logger.error(f"First page failed: {first.error}")
                raise first.error

            meta = first.meta
            total_pages = meta.total_pages if meta is not None else 1
            records: list[Record] = list(first.records)
            logger.info(
                f"{total_pages} page(s), {meta.total_items if meta else len(records)} items",
                extra={"total_pages": total_pages, "batch_size": batch_size},
            )

            if self.reporter is not None:
                self.reporter.start(total_pages, description=context.category.slug)
            try:
                await self._sink([first], 1, len(records))

                async def on_batch(pages: list[PageResult], last_page: int) -> None:
                    for page in pages:
                        if page.ok:
                            records.extend(page.records)
                    await self._sink(pages, last_page, len(records))

                batch_result = await self.scheduler.run_batches(
                    total_pages, batch_size, context, on_batch=on_batch
                )
            finally:
                if self.reporter is not None:
                    self.reporter.stop()

        failed_pages = batch_result.failed_pages
        if failed_pages:
            logger.warning(
                f"Skipped {len(failed_pages)} page(s): {failed_pages}",
                extra={"failed_pages": failed_pages},
            )

        return CollectionResult(
            records=records,
            total_pages=total_pages,
            failed_pages=failed_pages,
            page_errors=batch_result.page_errors,
        )

    async def _sink(self, pages: list[PageResult], last_page: int, record_count: int) -> None:
        if self.reporter is not None:
            self.reporter.update(last_page, extra={"products": record_count})

        if self.writer is None or self.progressive_path is None:
            return
        batch_records = [record for page in pages if page.ok for record in page.records]
        if batch_records:
            await asyncio.to_thread(self.writer.append, batch_records, self.progressive_path)
