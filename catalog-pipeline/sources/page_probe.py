"""
Page probe session source

Loads a category page and pulls the x-token / x-request-id pair out of
its inline scripts.

Usage:
    from sources.page_probe import PageProbeSessionSource

    async with PageProbeSessionSource() as source:
        creds = await source.extract(category)
"""

import re
import uuid
from typing import Any

import aiohttp
from bs4 import BeautifulSoup

from config.constants import DEFAULT_LOCALE, SESSION_PROBE_TIMEOUT, USER_AGENT
from core.errors import CredentialAcquisitionError
from core.types import Category, SessionCredentials
from observability import get_logger

from .base import BaseSessionSource

logger = get_logger(__name__)

TOKEN_RE = re.compile(r"""x-token["'\s]*:["'\s]*["']([^"']+)["']""", re.IGNORECASE)
REQUEST_ID_RE = re.compile(r"""x-request-id["'\s]*:["'\s]*["']([^"']+)["']""", re.IGNORECASE)


def generate_request_id() -> str:
    """Random request id in the same shape the site issues."""
    return uuid.uuid4().hex


def extract_credentials(html: str) -> tuple[str | None, str | None]:
    """Search inline scripts (then the whole page) for the credential pair.

    Returns:
        (token, request_id); either may be None
    """
    soup = BeautifulSoup(html, "html.parser")
    token: str | None = None
    request_id: str | None = None

    for script in soup.find_all("script"):
        text = script.string or script.get_text()
        if not text:
            continue
        if token is None:
            match = TOKEN_RE.search(text)
            if match:
                token = match.group(1)
        if request_id is None:
            match = REQUEST_ID_RE.search(text)
            if match:
                request_id = match.group(1)
        if token and request_id:
            break

    # Some pages embed the values outside <script> (data attributes, meta)
    if token is None:
        match = TOKEN_RE.search(html)
        if match:
            token = match.group(1)
    if request_id is None:
        match = REQUEST_ID_RE.search(html)
        if match:
            request_id = match.group(1)

    return token, request_id


class PageProbeSessionSource(BaseSessionSource):
    """Obtains credentials by fetching the category page itself."""

    DEFAULT_HEADERS = {
        "User-Agent": USER_AGENT,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": f"{DEFAULT_LOCALE},en-US;q=0.8,en;q=0.7",
        "Cache-Control": "no-cache",
    }

    def __init__(self, timeout: float = SESSION_PROBE_TIMEOUT):
        super().__init__("page_probe")
        self.timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(
                headers=self.DEFAULT_HEADERS,
                timeout=timeout,
            )
        return self._session

    async def close(self) -> None:
        """Close the session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def extract(self, category: Category) -> SessionCredentials:
        session = await self._get_session()

        try:
            async with session.get(category.url) as resp:
                if resp.status != 200:
                    raise CredentialAcquisitionError(
                        f"Category page returned HTTP {resp.status}",
                        category=category.path,
                    )
                html = await resp.text()
        except UnicodeDecodeError as e:
            raise CredentialAcquisitionError(
                f"Category page is not valid text: {e}", category=category.path
            ) from e
        except aiohttp.ClientError as e:
            raise CredentialAcquisitionError(
                f"Failed to load category page: {e}", category=category.path
            ) from e

        token, request_id = extract_credentials(html)
        if not token:
            raise CredentialAcquisitionError(
                "x-token not found on category page", category=category.path
            )

        if not request_id:
            request_id = generate_request_id()
            logger.debug(f"Generated x-request-id for {category.path}")

        return SessionCredentials(token=token, request_id=request_id, source=self.name)
