"""Common clients for the catalog pipeline."""

from .catalog_client import CatalogClient
from .session import SessionProvider, load_default_credentials

__all__ = [
    "CatalogClient",
    "SessionProvider",
    "load_default_credentials",
]
