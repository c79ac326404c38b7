"""Session credential sources."""

from .base import BaseSessionSource, SessionSource
from .page_probe import PageProbeSessionSource, extract_credentials, generate_request_id
from .static_source import StaticSessionSource

__all__ = [
    # Base
    "SessionSource",
    "BaseSessionSource",
    # Sources
    "PageProbeSessionSource",
    "StaticSessionSource",
    # Helpers
    "extract_credentials",
    "generate_request_id",
]
