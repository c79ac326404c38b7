"""Core infrastructure for the catalog pipeline."""

from .errors import (
    ApiLevelError,
    CatalogError,
    CredentialAcquisitionError,
    HttpStatusError,
    MalformedResponseError,
    TimeoutError,
    TransportError,
)
from .types import (
    Category,
    CategoryContext,
    CategoryOutcome,
    CategoryStatus,
    CollectionResult,
    PageMeta,
    PageResult,
    Record,
    RequestStats,
    SessionCredentials,
)

__all__ = [
    # Errors
    "CatalogError",
    "TransportError",
    "TimeoutError",
    "HttpStatusError",
    "MalformedResponseError",
    "ApiLevelError",
    "CredentialAcquisitionError",
    # Types
    "Category",
    "CategoryContext",
    "CategoryOutcome",
    "CategoryStatus",
    "CollectionResult",
    "PageMeta",
    "PageResult",
    "Record",
    "RequestStats",
    "SessionCredentials",
]
