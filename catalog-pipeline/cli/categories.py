"""Category list loading.

Two formats are accepted:
- a text file with one category URL per line (blank lines and `#`
  comments are skipped)
- a JSON file holding a list of URL strings or {"url", "sectionId"} objects

Only URLs on the target domain are kept.
"""

import json
from pathlib import Path
from typing import Any

from config.constants import TARGET_DOMAIN
from core.types import Category
from observability import get_logger

logger = get_logger(__name__)


def is_target_url(url: str, domain: str = TARGET_DOMAIN) -> bool:
    return domain in url


def to_category(url: str, section_id: int = 0, domain: str = TARGET_DOMAIN) -> Category | None:
    """Category for `url`, or None when it is off-domain or has no path."""
    if not is_target_url(url, domain):
        return None
    category = Category(url=url, section_id=section_id)
    try:
        category.path
    except ValueError:
        logger.warning(f"Skipping URL without a category path: {url}")
        return None
    return category


def parse_category_lines(lines: list[str], domain: str = TARGET_DOMAIN) -> list[Category]:
    """Turn text lines into categories, preserving order and dropping duplicates."""
    categories: list[Category] = []
    seen: set[str] = set()

    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line in seen:
            continue
        category = to_category(line, domain=domain)
        if category is None:
            logger.debug(f"Skipping non-catalog line: {line}")
            continue
        seen.add(line)
        categories.append(category)

    return categories


def parse_category_entries(entries: Any, domain: str = TARGET_DOMAIN) -> list[Category]:
    """Turn a decoded JSON category list into categories."""
    if not isinstance(entries, list):
        raise ValueError("Category JSON must be a list")

    categories: list[Category] = []
    seen: set[str] = set()

    for entry in entries:
        if isinstance(entry, str):
            url, section_id = entry.strip(), 0
        elif isinstance(entry, dict) and entry.get("url"):
            url = str(entry["url"]).strip()
            section_id = int(entry.get("sectionId") or 0)
        else:
            logger.debug(f"Skipping invalid category entry: {entry!r}")
            continue

        if url in seen:
            continue
        category = to_category(url, section_id, domain)
        if category is None:
            continue
        seen.add(url)
        categories.append(category)

    return categories


def load_categories(path: Path, domain: str = TARGET_DOMAIN) -> list[Category]:
    """Load categories from a text or JSON file.

    Raises:
        FileNotFoundError: the file does not exist
        ValueError: a JSON file is not a list
    """
    with open(path, encoding="utf-8") as f:
        content = f.read()

    if path.suffix.lower() == ".json":
        categories = parse_category_entries(json.loads(content), domain)
    else:
        categories = parse_category_lines(content.splitlines(), domain)

    logger.info(f"Loaded {len(categories)} categories from {path}")
    return categories
