"""Base protocol for session credential sources."""

from typing import Protocol, runtime_checkable

from core.types import Category, SessionCredentials


@runtime_checkable
class SessionSource(Protocol):
    """Protocol for anything that can obtain session headers for a category.

    Implementations may be slow (a page probe can take seconds) and may
    raise CredentialAcquisitionError. SessionProvider bounds the call with
    a timeout and falls back to the default pair.
    """

    @property
    def name(self) -> str:
        """Source identifier (e.g., 'page_probe', 'static')."""
        ...

    async def extract(self, category: Category) -> SessionCredentials:
        """Obtain a credential pair scoped to `category`.

        Raises:
            CredentialAcquisitionError: extraction failed
        """
        ...

    async def close(self) -> None:
        """Clean up resources (e.g., close HTTP sessions)."""
        ...


class BaseSessionSource:
    """Base implementation with common functionality."""

    def __init__(self, name: str):
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    async def extract(self, category: Category) -> SessionCredentials:
        raise NotImplementedError("Subclass must implement extract")

    async def close(self) -> None:
        """Default no-op close."""
        pass

    async def __aenter__(self) -> "BaseSessionSource":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
