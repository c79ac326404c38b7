"""Category collection: pagination and multi-category orchestration."""

from .orchestrator import CategoryOrchestrator, category_keys, summarize
from .pagination import PaginationController

__all__ = [
    "CategoryOrchestrator",
    "PaginationController",
    "category_keys",
    "summarize",
]
