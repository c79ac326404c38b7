"""Shared types for the catalog pipeline."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from .errors import CatalogError

Record = dict[str, Any]

_SLUG_RE = re.compile(r"[^a-zA-Z0-9]")


class CategoryStatus(str, Enum):
    """Per-category processing states."""

    PENDING = "pending"
    SESSION_ACQUIRED = "session_acquired"
    PAGINATING = "paginating"
    PERSISTED = "persisted"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class Category:
    """One scrape target reachable by URL."""

    url: str
    section_id: int = 0

    @property
    def path(self) -> str:
        """Last non-empty fragment of the URL path."""
        parts = [part for part in urlparse(self.url).path.split("/") if part]
        if not parts:
            raise ValueError(f"Category URL has no path: {self.url}")
        return parts[-1]

    @property
    def slug(self) -> str:
        """File-name safe form of `path`."""
        return _SLUG_RE.sub("-", self.path)


@dataclass(frozen=True)
class SessionCredentials:
    """Opaque credential pair scoped to one category."""

    token: str
    request_id: str
    source: str = "probe"

    @property
    def is_complete(self) -> bool:
        return bool(self.token) and bool(self.request_id)

    def as_headers(self) -> dict[str, str]:
        return {"x-token": self.token, "x-request-id": self.request_id}

    def masked(self) -> str:
        """Short form safe for logs."""
        return f"x-token={self.token[:10]}..., x-request-id={self.request_id[:10]}..."


@dataclass
class RequestStats:
    """Rolling request counters for the active category.

    Invariant: succeeded + failed == total.
    """

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    consecutive_failures: int = 0

    @property
    def success_rate(self) -> float:
        """Success rate as a fraction (0-1)."""
        if self.total == 0:
            return 0.0
        return self.succeeded / self.total

    def record_success(self) -> None:
        self.total += 1
        self.succeeded += 1
        self.consecutive_failures = 0

    def record_failure(self) -> None:
        self.total += 1
        self.failed += 1
        self.consecutive_failures += 1

    def record(self, ok: bool) -> None:
        if ok:
            self.record_success()
        else:
            self.record_failure()

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "consecutive_failures": self.consecutive_failures,
            "success_rate": round(self.success_rate * 100, 1),
        }


@dataclass(frozen=True)
class PageMeta:
    """Pagination metadata taken from the first page."""

    total_items: int
    items_per_page: int

    @property
    def total_pages(self) -> int:
        if self.items_per_page <= 0:
            return 1
        return max(1, math.ceil(self.total_items / self.items_per_page))


@dataclass(frozen=True)
class PageResult:
    """Outcome of a single page fetch."""

    page_number: int
    records: tuple[Record, ...] = ()
    error: CatalogError | None = None
    meta: PageMeta | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class CategoryContext:
    """State owned by the orchestrator for one category's lifetime."""

    category: Category
    credentials: SessionCredentials | None = None
    stats: RequestStats = field(default_factory=RequestStats)

    def require_credentials(self) -> SessionCredentials:
        if self.credentials is None:
            raise RuntimeError(f"No session acquired for {self.category.path}")
        return self.credentials


@dataclass
class CollectionResult:
    """Records and page accounting for one paginated category."""

    records: list[Record] = field(default_factory=list)
    total_pages: int = 0
    failed_pages: list[int] = field(default_factory=list)
    page_errors: dict[int, str] = field(default_factory=dict)

    @property
    def succeeded_pages(self) -> int:
        return self.total_pages - len(self.failed_pages)


@dataclass
class CategoryOutcome:
    """Final per-category entry in the orchestrator's outcome map."""

    category: Category
    status: CategoryStatus = CategoryStatus.PENDING
    records_count: int = 0
    total_pages: int = 0
    failed_pages: list[int] = field(default_factory=list)
    error: str | None = None
    outputs: list[Path] = field(default_factory=list)
    stats: RequestStats = field(default_factory=RequestStats)

    @property
    def result(self) -> str:
        """success, partial or failed."""
        if self.status == CategoryStatus.FAILED:
            return "failed"
        if self.failed_pages:
            return "partial"
        return "success"

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.category.url,
            "sectionId": self.category.section_id,
            "status": self.status.value,
            "result": self.result,
            "count": self.records_count,
            "totalPages": self.total_pages,
            "failedPages": self.failed_pages,
            "error": self.error,
            "outputs": [str(path) for path in self.outputs],
            "requests": self.stats.to_dict(),
        }
