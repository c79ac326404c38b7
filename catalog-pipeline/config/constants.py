"""Pure constants for the catalog pipeline. No side effects at import time."""

from pathlib import Path

# === Directories ===
# Use absolute path relative to project root (parent of catalog-pipeline/)
_PROJECT_ROOT = Path(__file__).parent.parent.parent
OUTPUT_DIR = _PROJECT_ROOT / "output"
JSON_DIR_NAME = "JSON"
CSV_DIR_NAME = "CSV"
DEFAULT_FILE_PREFIX = "hotline"
DEFAULT_CATEGORIES_FILE = _PROJECT_ROOT / "categories.txt"
DEFAULT_TOKENS_FILE = _PROJECT_ROOT / "tokens.json"

# === Catalog API ===
API_URL = "https://hotline.ua/svc/frontend-api/graphql"
TARGET_DOMAIN = "hotline.ua"
OPERATION_NAME = "getCatalogProducts"
DEFAULT_CITY_ID = 5394
DEFAULT_SORT = "popularity"
DEFAULT_LOCALE = "uk"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# === Pagination ===
DEFAULT_ITEMS_PER_PAGE = 48
DEFAULT_BATCH_SIZE = 15  # Pages fetched concurrently per batch

# === Delays (seconds) ===
BASE_BATCH_DELAY = 0.5  # Baseline pause between batches
FAILURE_MULTIPLIER_STEP = 2  # Multiplier added per consecutive failure
MAX_FAILURE_MULTIPLIER = 10  # Cap for the failure multiplier
FAST_PATH_MIN_REQUESTS = 10  # Samples needed before speeding up
FAST_PATH_SUCCESS_RATE = 0.95
FAST_PATH_FACTOR = 0.5
MIN_BATCH_DELAY = 0.2  # Floor for the fast path
CATEGORY_PAUSE = 2.0  # Pause between categories

# === Timeouts (seconds) ===
DEFAULT_REQUEST_TIMEOUT = 30
SESSION_PROBE_TIMEOUT = 30

# === Page retry ===
DEFAULT_PAGE_RETRY_ATTEMPTS = 2

# === Output ===
DEFAULT_MAX_FILE_SIZE_MB = 300
SAVE_FORMATS = ("json", "csv", "both")

# === Progress ===
LOG_BUFFER_LIMIT = 10  # Buffered log lines before a forced flush
