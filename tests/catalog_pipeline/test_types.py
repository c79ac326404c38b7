"""Tests for catalog-pipeline/core (types and errors)."""

import sys
from pathlib import Path

import pytest

# Add catalog-pipeline to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "catalog-pipeline"))

from core.errors import (
    ApiLevelError,
    CatalogError,
    HttpStatusError,
    MalformedResponseError,
    TimeoutError,
    TransportError,
)
from core.types import (
    Category,
    CategoryContext,
    CategoryOutcome,
    CategoryStatus,
    PageMeta,
    PageResult,
    RequestStats,
    SessionCredentials,
)

from .fixtures.catalog_responses import CATEGORY_URL


class TestCategory:
    """Tests for Category path and slug."""

    def test_path_is_last_fragment(self):
        """Trailing slash is ignored."""
        assert Category(url=CATEGORY_URL).path == "mobilnye-telefony-i-smartfony"

    def test_path_without_trailing_slash(self):
        category = Category(url="https://hotline.ua/ua/computer/noutbuki-netbuki")
        assert category.path == "noutbuki-netbuki"

    def test_slug_replaces_non_alphanumerics(self):
        category = Category(url="https://hotline.ua/ua/bt/holodilniki_2.0/")
        assert category.slug == "holodilniki-2-0"

    def test_url_without_path_raises(self):
        with pytest.raises(ValueError):
            Category(url="https://hotline.ua/").path


class TestSessionCredentials:
    """Tests for SessionCredentials."""

    def test_complete_pair(self):
        creds = SessionCredentials(token="t", request_id="r")
        assert creds.is_complete
        assert creds.as_headers() == {"x-token": "t", "x-request-id": "r"}

    def test_incomplete_pair(self):
        assert not SessionCredentials(token="t", request_id="").is_complete
        assert not SessionCredentials(token="", request_id="r").is_complete

    def test_masked_hides_full_token(self):
        creds = SessionCredentials(token="0123456789abcdef", request_id="r" * 20)
        assert "0123456789abcdef" not in creds.masked()


class TestRequestStats:
    """Tests for RequestStats counters."""

    def test_empty_stats(self):
        stats = RequestStats()
        assert stats.total == 0
        assert stats.success_rate == 0.0

    def test_counts_stay_consistent(self):
        stats = RequestStats()
        for ok in [True, False, True, False, False]:
            stats.record(ok)
            assert stats.succeeded + stats.failed == stats.total

        assert stats.total == 5
        assert stats.succeeded == 2
        assert stats.failed == 3
        assert stats.consecutive_failures == 2

    def test_success_resets_consecutive_failures(self):
        stats = RequestStats()
        stats.record_failure()
        stats.record_failure()
        stats.record_success()
        assert stats.consecutive_failures == 0

    def test_to_dict_reports_percentage(self):
        stats = RequestStats()
        stats.record_success()
        stats.record_failure()
        assert stats.to_dict()["success_rate"] == 50.0


class TestPageMeta:
    """Tests for page count derivation."""

    @pytest.mark.parametrize(
        "total_items,per_page,expected",
        [
            (144, 48, 3),
            (145, 48, 4),
            (1, 48, 1),
            (0, 48, 1),
            (100, 0, 1),
        ],
    )
    def test_total_pages(self, total_items, per_page, expected):
        assert PageMeta(total_items=total_items, items_per_page=per_page).total_pages == expected


class TestPageResult:
    """Tests for PageResult."""

    def test_ok_without_error(self):
        assert PageResult(page_number=2, records=({"_id": 1},)).ok

    def test_not_ok_with_error(self):
        assert not PageResult(page_number=2, error=TransportError()).ok


class TestCategoryContext:
    """Tests for CategoryContext."""

    def test_require_credentials_without_session(self, category):
        with pytest.raises(RuntimeError):
            CategoryContext(category=category).require_credentials()

    def test_fresh_stats_per_context(self, category):
        first = CategoryContext(category=category)
        first.stats.record_failure()
        second = CategoryContext(category=category)
        assert second.stats.total == 0


class TestCategoryOutcome:
    """Tests for outcome classification."""

    def test_success(self, category):
        outcome = CategoryOutcome(category=category, status=CategoryStatus.DONE)
        assert outcome.result == "success"

    def test_partial_with_failed_pages(self, category):
        outcome = CategoryOutcome(
            category=category, status=CategoryStatus.DONE, failed_pages=[4]
        )
        assert outcome.result == "partial"

    def test_failed(self, category):
        outcome = CategoryOutcome(category=category, status=CategoryStatus.FAILED)
        assert outcome.result == "failed"
        assert outcome.to_dict()["result"] == "failed"


class TestErrors:
    """Tests for the error taxonomy."""

    def test_transport_and_timeout_are_retryable(self):
        assert TransportError().is_retryable
        assert TimeoutError(timeout_seconds=30).is_retryable

    @pytest.mark.parametrize(
        "status,retryable",
        [(429, True), (500, True), (503, True), (400, False), (403, False), (404, False)],
    )
    def test_http_status_retryable(self, status, retryable):
        assert HttpStatusError(status=status).is_retryable is retryable

    def test_malformed_and_api_errors_are_permanent(self):
        assert not MalformedResponseError(field="data").is_retryable
        assert not ApiLevelError(errors=[{"message": "x"}]).is_retryable

    def test_to_dict_carries_context(self):
        error = HttpStatusError("HTTP 502", status=502, category="phones", page=7)
        data = error.to_dict()

        assert data["error_type"] == "HttpStatusError"
        assert data["kind"] == "http_status"
        assert data["status"] == 502
        assert data["category"] == "phones"
        assert data["page"] == 7

    def test_all_errors_share_base(self):
        for error in [TransportError(), TimeoutError(), MalformedResponseError()]:
            assert isinstance(error, CatalogError)
