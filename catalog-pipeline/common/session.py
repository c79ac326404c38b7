"""Per-category session credentials with a static fallback pair."""

import asyncio
import json
from pathlib import Path

from config.settings import Settings
from core.errors import CredentialAcquisitionError
from core.types import Category, SessionCredentials
from observability import get_logger
from sources.base import SessionSource

logger = get_logger(__name__)


def load_default_credentials(settings: Settings) -> SessionCredentials:
    """Resolve the fallback credential pair.

    Settings values win; missing ones are read from the tokens file
    ({"x-token": ..., "x-request-id": ...}).
    """
    token = settings.default_x_token or ""
    request_id = settings.default_x_request_id or ""

    if not (token and request_id):
        file_token, file_request_id = _read_tokens_file(settings.tokens_file)
        token = token or file_token
        request_id = request_id or file_request_id

    if not (token and request_id):
        logger.warning("No complete default credentials configured")

    return SessionCredentials(token=token, request_id=request_id, source="default")


def _read_tokens_file(path: Path) -> tuple[str, str]:
    if not path.exists():
        return "", ""

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to read tokens file {path}: {e}")
        return "", ""

    if not isinstance(data, dict):
        logger.warning(f"Tokens file {path} is not a JSON object")
        return "", ""

    return str(data.get("x-token") or ""), str(data.get("x-request-id") or "")


class SessionProvider:
    """Hands out credentials for one category at a time.

    Wraps a SessionSource with a timeout and never raises: any failure
    yields the default pair. Successful pairs are cached per category URL
    and are never shared between categories.
    """

    def __init__(
        self,
        source: SessionSource,
        defaults: SessionCredentials,
        timeout: float,
    ):
        self.source = source
        self.defaults = defaults
        self.timeout = timeout
        self._cache: dict[str, SessionCredentials] = {}

    async def obtain(self, category: Category) -> SessionCredentials:
        """Credentials for `category`, falling back to the default pair."""
        cached = self._cache.get(category.url)
        if cached is not None:
            return cached

        try:
            creds = await asyncio.wait_for(self.source.extract(category), self.timeout)
        except CredentialAcquisitionError as e:
            logger.warning(f"Session extraction failed, using defaults: {e}")
            return self.defaults
        except asyncio.TimeoutError:
            logger.warning(
                f"Session extraction timed out after {self.timeout}s, using defaults"
            )
            return self.defaults
        except Exception as e:
            logger.warning(
                f"Session source {self.source.name} crashed, using defaults: {e}",
                extra={"error_type": type(e).__name__},
            )
            return self.defaults

        if not creds.is_complete:
            logger.warning("Session extraction returned an incomplete pair, using defaults")
            return self.defaults

        self._cache[category.url] = creds
        logger.info(f"Session acquired ({creds.source}): {creds.masked()}")
        return creds

    def invalidate(self, category: Category) -> None:
        """Forget the cached pair so the next obtain() probes again."""
        self._cache.pop(category.url, None)

    async def close(self) -> None:
        await self.source.close()
