"""
Catalog API client

Fetches one page of a category listing from the paged GraphQL catalog
endpoint and classifies every failure into a typed CatalogError.

Usage:
    from common.catalog_client import CatalogClient

    async with CatalogClient() as client:
        result = await client.fetch_page(1, category, credentials)
        if result.ok:
            print(result.meta.total_pages, len(result.records))
"""

import asyncio
import json
from typing import Any

import aiohttp

from config.constants import (
    API_URL,
    DEFAULT_CITY_ID,
    DEFAULT_ITEMS_PER_PAGE,
    DEFAULT_LOCALE,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SORT,
    OPERATION_NAME,
    USER_AGENT,
)
from core.errors import (
    ApiLevelError,
    CatalogError,
    HttpStatusError,
    MalformedResponseError,
    TimeoutError,
    TransportError,
)
from core.types import Category, PageMeta, PageResult, SessionCredentials
from observability import get_logger

logger = get_logger(__name__)

CATALOG_QUERY = """
query getCatalogProducts(
  $path: String!, $cityId: Int, $sort: String, $showFirst: String,
  $phrase: String, $itemsPerPage: Int, $page: Int, $filters: [Int],
  $excludedFilters: [Int], $priceMin: Int, $priceMax: Int
) {
  byPathSectionQueryProducts(
    path: $path, cityId: $cityId, sort: $sort, showFirst: $showFirst,
    phrase: $phrase, itemsPerPage: $itemsPerPage, page: $page,
    filters: $filters, excludedFilters: $excludedFilters,
    priceMin: $priceMin, priceMax: $priceMax
  ) {
    collection {
      _id
      title
      date
      vendor { title __typename }
      section { _id productCategoryName __typename }
      isPromo
      toOfferServiceUrl
      offerCount
      madeInUkraine
      rating
      hasNewOffers
      url
      imageLinks
      minPrice
      maxPrice
      techShortSpecifications
      techShortSpecificationsList
      reviewsCount
      questionsCount
      isNew
      promoBid
      __typename
    }
    paginationInfo { lastPage totalCount itemsPerPage __typename }
    __typename
  }
}
""".strip()


class CatalogClient:
    """Single-attempt page fetcher for the catalog API.

    `fetch_page` never raises for request failures; the error is returned
    inside the PageResult so a batch can keep going.
    """

    def __init__(
        self,
        api_url: str = API_URL,
        city_id: int = DEFAULT_CITY_ID,
        locale: str = DEFAULT_LOCALE,
        sort: str = DEFAULT_SORT,
        items_per_page: int = DEFAULT_ITEMS_PER_PAGE,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        concurrency: int = 20,
    ):
        """
        Initialize catalog client.

        Args:
            api_url: GraphQL endpoint
            city_id: City used for regional pricing
            locale: Value of the x-language header
            sort: Listing sort order
            items_per_page: Page size requested when the caller passes none
            timeout: Per-request timeout in seconds
            concurrency: Connection pool size
        """
        self.api_url = api_url
        self.city_id = city_id
        self.locale = locale
        self.sort = sort
        self.items_per_page = items_per_page
        self.timeout = timeout
        self.concurrency = concurrency
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(limit=self.concurrency)
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(connector=connector, timeout=timeout)
        return self._session

    async def close(self) -> None:
        """Close the session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "CatalogClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def build_headers(
        self, category: Category, credentials: SessionCredentials
    ) -> dict[str, str]:
        """Request headers for one category, credentials included."""
        return {
            "accept": "*/*",
            "content-type": "application/json",
            "x-language": self.locale,
            "User-Agent": USER_AGENT,
            "x-referer": category.url,
            **credentials.as_headers(),
        }

    def build_payload(self, category: Category, page_number: int, page_size: int) -> dict[str, Any]:
        """GraphQL request body for one page."""
        return {
            "operationName": OPERATION_NAME,
            "variables": {
                "path": category.path,
                "cityId": self.city_id,
                "page": page_number,
                "sort": self.sort,
                "itemsPerPage": page_size,
                "filters": [],
                "excludedFilters": [],
            },
            "query": CATALOG_QUERY,
        }

    async def fetch_page(
        self,
        page_number: int,
        category: Category,
        credentials: SessionCredentials,
        page_size: int | None = None,
    ) -> PageResult:
        """
        Fetch one listing page.

        Args:
            page_number: 1-based page number
            category: Category being paginated
            credentials: Session credentials for this category
            page_size: Items per page (defaults to the client's page size)

        Returns:
            PageResult with records (and PageMeta for page 1), or with the
            classified error
        """
        size = page_size or self.items_per_page
        try:
            body = await self._post(page_number, category, credentials, size)
            records, meta = self._parse(body, page_number, category, size)
        except CatalogError as e:
            logger.debug(
                f"Page {page_number} of {category.path} failed: {e}",
                extra={"error_kind": e.kind},
            )
            return PageResult(page_number=page_number, error=e)

        return PageResult(page_number=page_number, records=records, meta=meta)

    async def _post(
        self,
        page_number: int,
        category: Category,
        credentials: SessionCredentials,
        page_size: int,
    ) -> Any:
        session = await self._get_session()
        context = {"category": category.path, "page": page_number}

        try:
            async with session.post(
                self.api_url,
                json=self.build_payload(category, page_number, page_size),
                headers=self.build_headers(category, credentials),
            ) as resp:
                if not 200 <= resp.status < 300:
                    raise HttpStatusError(
                        f"HTTP {resp.status}", status=resp.status, **context
                    )
                text = await resp.text()
        # ServerTimeoutError is also a ClientError, so timeouts go first
        except (asyncio.TimeoutError, aiohttp.ServerTimeoutError) as e:
            raise TimeoutError(
                f"Request timed out after {self.timeout}s",
                timeout_seconds=self.timeout,
                **context,
            ) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"{type(e).__name__}: {e}", **context) from e
        except UnicodeDecodeError as e:
            raise MalformedResponseError(
                "Response body is not valid UTF-8", field="body", **context
            ) from e

        try:
            return json.loads(text)
        except ValueError as e:
            raise MalformedResponseError(
                "Response body is not JSON", field="body", **context
            ) from e

    def _parse(
        self,
        body: Any,
        page_number: int,
        category: Category,
        page_size: int,
    ) -> tuple[tuple[dict[str, Any], ...], PageMeta | None]:
        context = {"category": category.path, "page": page_number}

        if not isinstance(body, dict):
            raise MalformedResponseError(
                "Response body is not a JSON object", field="body", **context
            )

        errors = body.get("errors")
        if errors:
            first = errors[0] if isinstance(errors, list) else errors
            message = first.get("message") if isinstance(first, dict) else str(first)
            raise ApiLevelError(
                f"API error: {message}",
                errors=errors if isinstance(errors, list) else [errors],
                **context,
            )

        data = body.get("data")
        if not isinstance(data, dict):
            raise MalformedResponseError("Missing data", field="data", **context)

        listing = data.get("byPathSectionQueryProducts")
        if not isinstance(listing, dict):
            raise MalformedResponseError(
                "Missing byPathSectionQueryProducts",
                field="data.byPathSectionQueryProducts",
                **context,
            )

        collection = listing.get("collection")
        if not isinstance(collection, list):
            raise MalformedResponseError(
                "Missing collection",
                field="data.byPathSectionQueryProducts.collection",
                **context,
            )

        meta = None
        if page_number == 1:
            meta = self._parse_meta(listing.get("paginationInfo"), page_size, context)

        return tuple(collection), meta

    @staticmethod
    def _parse_meta(info: Any, page_size: int, context: dict[str, Any]) -> PageMeta:
        """Page count from paginationInfo.

        The API reports the category's declared item count in `itemsPerPage`
        (`totalCount` is only a fallback when that field is absent), and pages
        are counted against the requested page size.
        """
        if not isinstance(info, dict):
            raise MalformedResponseError(
                "Missing paginationInfo",
                field="data.byPathSectionQueryProducts.paginationInfo",
                **context,
            )

        try:
            declared = info.get("itemsPerPage") or info.get("totalCount") or 0
            total_items = int(declared)
        except (TypeError, ValueError) as e:
            raise MalformedResponseError(
                f"Invalid paginationInfo: {info}",
                field="data.byPathSectionQueryProducts.paginationInfo",
                **context,
            ) from e

        return PageMeta(total_items=max(total_items, 0), items_per_page=page_size)
