"""Error hierarchy for the catalog pipeline.

All pipeline errors inherit from CatalogError.
Use `kind` to tell failure classes apart and `is_retryable` to decide
whether a page may be fetched again.
"""

from __future__ import annotations

from typing import Any


class CatalogError(Exception):
    """Base error for all catalog pipeline errors.

    Attributes:
        message: Error description
        category: Category path the error relates to (if applicable)
        page: Page number the error relates to (if applicable)
    """

    kind = "catalog"

    def __init__(
        self,
        message: str,
        *,
        category: str | None = None,
        page: int | None = None,
    ) -> None:
        self.category = category
        self.page = page
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        """Whether this error can be retried."""
        return False

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "kind": self.kind,
            "message": str(self),
            "category": self.category,
            "page": self.page,
            "is_retryable": self.is_retryable,
        }


class TransportError(CatalogError):
    """Connection-level failure (DNS, refused, reset, broken pipe).

    This is retryable - might be a temporary network issue.
    """

    kind = "transport"

    def __init__(self, message: str = "Transport error", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)

    @property
    def is_retryable(self) -> bool:
        return True


class TimeoutError(CatalogError):
    """Request timed out.

    This is retryable - the server might be temporarily slow.
    """

    kind = "timeout"

    def __init__(
        self,
        message: str = "Request timed out",
        *,
        timeout_seconds: float | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.timeout_seconds = timeout_seconds

    @property
    def is_retryable(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["timeout_seconds"] = self.timeout_seconds
        return d


class HttpStatusError(CatalogError):
    """Non-2xx HTTP status.

    Retryable only for 429 and 5xx responses.
    """

    kind = "http_status"

    def __init__(
        self,
        message: str = "Unexpected HTTP status",
        *,
        status: int,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.status = status

    @property
    def is_retryable(self) -> bool:
        return self.status == 429 or self.status >= 500

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["status"] = self.status
        return d


class MalformedResponseError(CatalogError):
    """Response body is missing an expected field or is not JSON.

    This is NOT retryable - the payload shape is wrong.
    """

    kind = "malformed"

    def __init__(
        self,
        message: str = "Malformed response",
        *,
        field: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["field"] = self.field
        return d


class ApiLevelError(CatalogError):
    """The API answered 2xx but returned an explicit `errors` list."""

    kind = "api"

    def __init__(
        self,
        message: str = "API returned errors",
        *,
        errors: list[Any] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.errors = errors or []

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["errors"] = self.errors
        return d


class CredentialAcquisitionError(CatalogError):
    """Session credential extraction failed.

    Recovered inside SessionProvider via the default pair; never surfaced
    to pipeline callers.
    """

    kind = "credentials"

    def __init__(self, message: str = "Credential acquisition failed", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
