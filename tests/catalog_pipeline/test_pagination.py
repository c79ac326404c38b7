"""Tests for catalog-pipeline/collectors/pagination.py."""

import io
import json
import sys
from pathlib import Path

import pytest

# Add catalog-pipeline to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "catalog-pipeline"))

from collectors.pagination import PaginationController
from core.errors import ApiLevelError, TransportError
from rate_limit.progress import ProgressReporter
from rate_limit.scheduler import BatchScheduler
from storage.json_storage import SizeBoundedWriter

from .fixtures.fakes import FakeCatalogClient


def make_controller(client, fake_sleep, **kwargs) -> PaginationController:
    return PaginationController(
        client=client,
        scheduler=BatchScheduler(client=client, sleep=fake_sleep),
        **kwargs,
    )


class TestCollectAll:
    """Tests for PaginationController.collect_all()."""

    @pytest.mark.asyncio
    async def test_three_pages_in_one_batch(self, context, fake_sleep, recorded_sleeps):
        """144 items at 48 per page with batch size 2: page 1, then pages 2-3 together."""
        client = FakeCatalogClient(total_items=144, items_per_page=48)
        controller = make_controller(client, fake_sleep)

        result = await controller.collect_all(context, batch_size=2)

        assert client.calls[0] == 1
        assert sorted(client.calls[1:]) == [2, 3]
        assert result.total_pages == 3
        assert result.failed_pages == []
        assert [r["_id"] for r in result.records] == [
            1000, 1001, 1002, 2000, 2001, 2002, 3000, 3001, 3002
        ]
        assert recorded_sleeps == []  # single batch, no inter-batch delay

    @pytest.mark.asyncio
    async def test_page_one_counts_in_stats(self, context, fake_sleep):
        client = FakeCatalogClient(total_items=144, items_per_page=48)
        controller = make_controller(client, fake_sleep)

        await controller.collect_all(context, batch_size=2)

        assert context.stats.total == 3
        assert context.stats.succeeded == 3

    @pytest.mark.asyncio
    async def test_page_one_error_aborts(self, context, fake_sleep):
        client = FakeCatalogClient(failures={1: [ApiLevelError("Invalid token")]})
        controller = make_controller(client, fake_sleep)

        with pytest.raises(ApiLevelError):
            await controller.collect_all(context, batch_size=2)

        assert client.calls == [1]
        assert context.stats.failed == 1

    @pytest.mark.asyncio
    async def test_single_page_category(self, context, fake_sleep):
        client = FakeCatalogClient(total_items=20, items_per_page=48)
        controller = make_controller(client, fake_sleep)

        result = await controller.collect_all(context, batch_size=15)

        assert client.calls == [1]
        assert result.total_pages == 1
        assert len(result.records) == 3

    @pytest.mark.asyncio
    async def test_failed_page_is_skipped(self, context, fake_sleep):
        client = FakeCatalogClient(failures={3: [TransportError()]})
        controller = make_controller(client, fake_sleep)

        result = await controller.collect_all(context, batch_size=2)

        assert result.failed_pages == [3]
        assert result.succeeded_pages == 2
        assert len(result.records) == 6
        assert 3 in result.page_errors

    @pytest.mark.asyncio
    async def test_progressive_append(self, context, fake_sleep, tmp_path):
        client = FakeCatalogClient(total_items=240, items_per_page=48)  # 5 pages
        progressive = tmp_path / "JSON" / "products.json"
        controller = make_controller(
            client,
            fake_sleep,
            writer=SizeBoundedWriter(max_bytes=10 * 1024 * 1024),
            progressive_path=progressive,
        )

        result = await controller.collect_all(context, batch_size=2)

        with open(progressive, encoding="utf-8") as f:
            saved = json.load(f)
        assert saved == result.records
        assert len(saved) == 15

    @pytest.mark.asyncio
    async def test_no_progressive_file_without_path(self, context, fake_sleep, tmp_path):
        client = FakeCatalogClient()
        controller = make_controller(
            client, fake_sleep, writer=SizeBoundedWriter(max_bytes=1024)
        )

        await controller.collect_all(context, batch_size=2)

        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_progress_reporter_updated(self, context, fake_sleep):
        client = FakeCatalogClient(total_items=240, items_per_page=48)
        reporter = ProgressReporter(disable=True, stream=io.StringIO())
        controller = make_controller(client, fake_sleep, reporter=reporter)

        await controller.collect_all(context, batch_size=2)

        assert reporter.total == 5
        assert reporter.completed == 5
        assert reporter.extra["products"] == 15
        assert not reporter.active

    @pytest.mark.asyncio
    async def test_reporter_stopped_on_unexpected_error(self, context, fake_sleep):
        client = FakeCatalogClient()
        reporter = ProgressReporter(disable=True, stream=io.StringIO())

        class ExplodingScheduler(BatchScheduler):
            async def run_batches(self, *args, **kwargs):
                raise OSError("disk full")

        controller = PaginationController(
            client=client,
            scheduler=ExplodingScheduler(client=client, sleep=fake_sleep),
            reporter=reporter,
        )

        with pytest.raises(OSError):
            await controller.collect_all(context, batch_size=2)

        assert not reporter.active
