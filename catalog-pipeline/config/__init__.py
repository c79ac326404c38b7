"""Configuration module for the catalog pipeline."""

from .settings import Settings, get_settings
from .constants import (
    # Catalog API
    API_URL,
    TARGET_DOMAIN,
    # Pagination
    DEFAULT_BATCH_SIZE,
    DEFAULT_ITEMS_PER_PAGE,
    # Delays
    BASE_BATCH_DELAY,
    CATEGORY_PAUSE,
    # Timeouts
    DEFAULT_REQUEST_TIMEOUT,
    # Output
    DEFAULT_MAX_FILE_SIZE_MB,
)

__all__ = [
    "Settings",
    "get_settings",
    "API_URL",
    "TARGET_DOMAIN",
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_ITEMS_PER_PAGE",
    "BASE_BATCH_DELAY",
    "CATEGORY_PAUSE",
    "DEFAULT_REQUEST_TIMEOUT",
    "DEFAULT_MAX_FILE_SIZE_MB",
]
