"""Multi-category scrape orchestration.

Pipeline flow per category:
1. Acquire session credentials (probe, or the default pair)
2. Paginate: page 1 alone, the rest in adaptive batches
3. Persist per-category JSON and/or CSV
4. Pause before the next category

After the last category the combined outputs and the run report are
written.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from common.session import SessionProvider
from config.settings import Settings
from core.errors import CatalogError
from core.types import (
    Category,
    CategoryContext,
    CategoryOutcome,
    CategoryStatus,
    Record,
)
from observability.logger import get_logger, log_context
from rate_limit.backoff import AdaptiveBatchDelay, page_retry_backoff
from rate_limit.progress import ProgressReporter
from rate_limit.scheduler import BatchScheduler, PageFetcher
from storage.base import SaveResult
from storage.csv_storage import CSVExporter
from storage.json_storage import SizeBoundedWriter, atomic_write_json

from .pagination import PaginationController

logger = get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


def category_keys(categories: list[Category]) -> list[str]:
    """Unique output key per category.

    The key is the category slug; a repeated slug gets a numeric suffix
    (phones, phones-2, ...) and a URL without a path gets its position.
    Keys name the per-category files and the report entries.
    """
    keys: list[str] = []
    taken: set[str] = set()
    for index, category in enumerate(categories):
        try:
            base = category.slug
        except ValueError:
            base = f"category-{index + 1}"
        key, suffix = base, 2
        while key in taken:
            key = f"{base}-{suffix}"
            suffix += 1
        taken.add(key)
        keys.append(key)
    return keys


def summarize(outcomes: dict[str, CategoryOutcome]) -> dict[str, int]:
    """Counts for the end-of-run summary."""
    results = [outcome.result for outcome in outcomes.values()]
    return {
        "success": results.count("success"),
        "partial": results.count("partial"),
        "failed": results.count("failed"),
        "skipped_pages": sum(len(o.failed_pages) for o in outcomes.values()),
        "total_records": sum(o.records_count for o in outcomes.values()),
    }


@dataclass
class CategoryOrchestrator:
    """Processes categories strictly one after another.

    Each category gets a fresh CategoryContext (credentials and request
    stats). A category that fails is recorded and the run moves on.
    """

    settings: Settings
    client: PageFetcher
    sessions: SessionProvider
    reporter: ProgressReporter | None = None
    sleep: SleepFunc = asyncio.sleep

    _writer: SizeBoundedWriter | None = field(default=None, init=False, repr=False)
    _csv: CSVExporter | None = field(default=None, init=False, repr=False)
    _collected: dict[str, list[Record]] = field(default_factory=dict, init=False, repr=False)

    @property
    def writer(self) -> SizeBoundedWriter:
        """JSON writer (lazy initialization)."""
        if self._writer is None:
            self._writer = SizeBoundedWriter(max_bytes=self.settings.max_file_size_bytes)
        return self._writer

    @property
    def csv_exporter(self) -> CSVExporter:
        """CSV exporter (lazy initialization)."""
        if self._csv is None:
            self._csv = CSVExporter(max_bytes=self.settings.max_file_size_bytes)
        return self._csv

    def json_path(self, name: str) -> Path:
        return self.settings.json_dir / f"{self.settings.file_prefix}-{name}.json"

    def csv_path(self, name: str) -> Path:
        return self.settings.csv_dir / f"{self.settings.file_prefix}-{name}.csv"

    @property
    def report_path(self) -> Path:
        return self.json_path("all-categories-report")

    def build_controller(self) -> PaginationController:
        """Wire scheduler and controller from settings."""
        scheduler = BatchScheduler(
            client=self.client,
            delay_policy=AdaptiveBatchDelay(base=self.settings.base_delay),
            retry_policy=(
                page_retry_backoff(self.settings.page_retry_attempts)
                if self.settings.retry_failed_pages
                else None
            ),
            page_size=self.settings.items_per_page,
            sleep=self.sleep,
        )
        return PaginationController(
            client=self.client,
            scheduler=scheduler,
            writer=self.writer if self.settings.progressive_save else None,
            reporter=self.reporter,
            progressive_path=self.json_path("products") if self.settings.progressive_save else None,
            page_size=self.settings.items_per_page,
        )

    async def run(
        self,
        categories: list[Category],
        batch_size: int | None = None,
    ) -> dict[str, CategoryOutcome]:
        """Scrape every category in order.

        Args:
            categories: Categories to process
            batch_size: Pages per concurrent batch (default from settings)

        Returns:
            Outcome per category key (see category_keys), in processing order
        """
        batch_size = batch_size or self.settings.batch_size
        controller = self.build_controller()
        outcomes: dict[str, CategoryOutcome] = {}
        keys = category_keys(categories)
        self._collected = {}

        logger.info(f"Starting {len(categories)} categories", extra={"batch_size": batch_size})

        for index, (key, category) in enumerate(zip(keys, categories)):
            logger.info(f"[{index + 1}/{len(categories)}] {category.url}")
            outcome = await self._run_category(category, key, controller, batch_size)
            outcomes[key] = outcome

            if index < len(categories) - 1 and self.settings.category_pause > 0:
                await self.sleep(self.settings.category_pause)

        await self._write_combined(outcomes)
        await self._write_report(categories, outcomes)

        counts = summarize(outcomes)
        logger.info(
            f"Finished: {counts['total_records']} records from {len(categories)} categories",
            extra=counts,
        )
        return outcomes

    async def _run_category(
        self,
        category: Category,
        key: str,
        controller: PaginationController,
        batch_size: int,
    ) -> CategoryOutcome:
        context = CategoryContext(category=category)
        outcome = CategoryOutcome(category=category, stats=context.stats)

        with log_context(category=key):
            try:
                with log_context(phase="session"):
                    context.credentials = await self.sessions.obtain(category)
                outcome.status = CategoryStatus.SESSION_ACQUIRED

                outcome.status = CategoryStatus.PAGINATING
                collection = await controller.collect_all(context, batch_size)
                outcome.total_pages = collection.total_pages
                outcome.failed_pages = collection.failed_pages
                outcome.records_count = len(collection.records)

                with log_context(phase="persist"):
                    outcome.outputs = await self._persist(key, collection.records)
                outcome.status = CategoryStatus.PERSISTED

                self._collected[key] = collection.records
                outcome.status = CategoryStatus.DONE
                logger.info(
                    f"Collected {outcome.records_count} records",
                    extra={"result": outcome.result, **context.stats.to_dict()},
                )
            except (CatalogError, OSError) as e:
                self._fail(outcome, e)
                logger.error(
                    f"Category failed: {e}",
                    extra={"error_type": type(e).__name__},
                )
            except Exception as e:
                self._fail(outcome, e)
                logger.error(
                    f"Category failed with unexpected error: {e}",
                    extra={"error_type": type(e).__name__},
                    exc_info=True,
                )

        return outcome

    def _fail(self, outcome: CategoryOutcome, error: Exception) -> None:
        outcome.status = CategoryStatus.FAILED
        outcome.error = str(error) or type(error).__name__
        # A pair that just failed must not be handed out again
        self.sessions.invalidate(outcome.category)

    async def _persist(self, key: str, records: list[Record]) -> list[Path]:
        results: list[SaveResult] = []
        if self.settings.save_json:
            results.append(
                await asyncio.to_thread(self.writer.write, records, self.json_path(key))
            )
        if self.settings.save_csv:
            results.append(
                await asyncio.to_thread(
                    self.csv_exporter.write, records, self.csv_path(key)
                )
            )
        return [result.path for result in results if result.path is not None]

    async def _write_combined(self, outcomes: dict[str, CategoryOutcome]) -> None:
        if not self.settings.combined_output:
            return

        combined: list[Record] = []
        for key, outcome in outcomes.items():
            if outcome.status != CategoryStatus.DONE:
                continue
            category = outcome.category
            combined.extend(
                {**record, "category": category.path, "categoryUrl": category.url}
                for record in self._collected.get(key, [])
            )

        if not combined:
            logger.info("No records collected, skipping combined outputs")
            return

        if self.settings.save_json:
            await asyncio.to_thread(self.writer.write, combined, self.json_path("all-categories"))
        if self.settings.save_csv:
            await asyncio.to_thread(
                self.csv_exporter.write, combined, self.csv_path("all-categories")
            )

    async def _write_report(
        self,
        categories: list[Category],
        outcomes: dict[str, CategoryOutcome],
    ) -> None:
        counts = summarize(outcomes)
        report: dict[str, Any] = {
            "totalCategories": len(categories),
            "totalProducts": counts["total_records"],
            "skippedPages": counts["skipped_pages"],
            "summary": counts,
            "categories": {key: outcome.to_dict() for key, outcome in outcomes.items()},
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }
        await asyncio.to_thread(atomic_write_json, self.report_path, report)
        logger.info(f"Report saved to {self.report_path}")
