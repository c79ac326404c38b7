"""API response fixtures for catalog client tests.

These fixtures mimic the structure of actual catalog GraphQL responses.
"""

from typing import Any

CATEGORY_URL = "https://hotline.ua/ua/mobile/mobilnye-telefony-i-smartfony/"
SECOND_CATEGORY_URL = "https://hotline.ua/ua/computer/noutbuki-netbuki/"


def make_product(product_id: int, title: str = "Смартфон Galaxy", **overrides: Any) -> dict:
    """One catalog item as returned inside `collection`."""
    product = {
        "_id": product_id,
        "title": title,
        "date": "2025-01-15",
        "vendor": {"title": "Samsung", "__typename": "Vendor"},
        "section": {
            "_id": 386,
            "productCategoryName": "Смартфони",
            "__typename": "Section",
        },
        "isPromo": False,
        "offerCount": 42,
        "url": f"/ua/mobile-samsung-{product_id}/",
        "imageLinks": [
            {"thumb": f"/img/{product_id}-t.jpg", "big": f"/img/{product_id}-b.jpg"},
        ],
        "minPrice": 12999,
        "maxPrice": 15499,
        "techShortSpecificationsList": ["6.4 inch", "128 GB", "5000 mAh"],
        "__typename": "Product",
    }
    product.update(overrides)
    return product


def make_page_response(
    products: list[dict],
    declared_items: int | None = 144,
    total_count: int | None = None,
    last_page: int = 3,
) -> dict:
    """Successful catalog envelope.

    The live API puts the category's declared item count in `itemsPerPage`;
    `totalCount` is usually the size of the returned page.
    """
    pagination: dict[str, Any] = {"lastPage": last_page, "__typename": "PaginationInfo"}
    if declared_items is not None:
        pagination["itemsPerPage"] = declared_items
    if total_count is not None:
        pagination["totalCount"] = total_count
    return {
        "data": {
            "byPathSectionQueryProducts": {
                "collection": products,
                "paginationInfo": pagination,
                "__typename": "ProductsCollection",
            }
        }
    }


PAGE_ONE_RESPONSE = make_page_response([make_product(1001), make_product(1002)])

# API-level error (2xx with errors array)
API_ERROR_RESPONSE = {
    "errors": [
        {
            "message": "Invalid token",
            "extensions": {"code": "UNAUTHENTICATED"},
        }
    ],
    "data": None,
}

# Envelope without the collection list
MISSING_COLLECTION_RESPONSE = {
    "data": {
        "byPathSectionQueryProducts": {
            "paginationInfo": {"lastPage": 3, "totalCount": 48, "itemsPerPage": 144},
        }
    }
}

# Collection present, pagination info absent (valid for pages > 1)
NO_PAGINATION_RESPONSE = {
    "data": {
        "byPathSectionQueryProducts": {
            "collection": [make_product(2001)],
        }
    }
}

# Empty data payload
NULL_DATA_RESPONSE = {"data": None}


# Category pages for the session probe
CATEGORY_PAGE_HTML = """
<html>
<head>
  <title>Смартфони</title>
  <script>
    window.__APP_CONFIG__ = {
      "apiUrl": "/svc/frontend-api/graphql",
      "x-token": "a1b2c3d4e5f6g7h8",
      "x-request-id": "5f0e7c2b9d8a4e6f"
    };
  </script>
  <script src="/static/app.js"></script>
</head>
<body><div id="app"></div></body>
</html>
"""

CATEGORY_PAGE_HTML_TOKEN_ONLY = """
<html>
<head>
  <script>
    var headers = {'x-token': 'tok-only-123'};
  </script>
</head>
<body></body>
</html>
"""

CATEGORY_PAGE_HTML_NO_TOKEN = """
<html>
<head><script>var config = {"apiUrl": "/svc/frontend-api/graphql"};</script></head>
<body></body>
</html>
"""
