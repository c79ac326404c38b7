"""Session source that always hands out one fixed credential pair."""

from core.errors import CredentialAcquisitionError
from core.types import Category, SessionCredentials

from .base import BaseSessionSource


class StaticSessionSource(BaseSessionSource):
    """Returns the same credentials for every category.

    Used when automatic session probing is disabled, and in tests.
    """

    def __init__(self, credentials: SessionCredentials):
        super().__init__("static")
        self.credentials = credentials

    async def extract(self, category: Category) -> SessionCredentials:
        if not self.credentials.is_complete:
            raise CredentialAcquisitionError(
                "Static credentials are incomplete", category=category.path
            )
        return SessionCredentials(
            token=self.credentials.token,
            request_id=self.credentials.request_id,
            source=self.name,
        )
