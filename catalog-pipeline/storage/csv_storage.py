"""CSV export of catalog records."""

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from config.constants import DEFAULT_MAX_FILE_SIZE_MB
from observability import get_logger

from .base import OutputFileSequence, SaveResult

logger = get_logger(__name__)

BASE_COLUMNS = [
    "ID",
    "Title",
    "Vendor",
    "Section",
    "Min Price",
    "Max Price",
    "Offers",
    "URL",
    "Images",
    "Specifications",
]
CATEGORY_COLUMNS = ["Category", "Category URL"]
LIST_SEPARATOR = "; "

_IMAGE_KEYS = ("big", "basic", "thumb", "url")


def clean_text(value: Any) -> str:
    """Flatten a cell value to a single line of text."""
    if value is None:
        return ""
    text = str(value)
    for char in ("\n", "\r", "\t"):
        text = text.replace(char, " ")
    return text.strip()


def _nested_title(value: Any, key: str) -> Any:
    if isinstance(value, dict):
        return value.get(key)
    return value


def _image_link(item: Any) -> str:
    if isinstance(item, dict):
        for key in _IMAGE_KEYS:
            if item.get(key):
                return str(item[key])
        return ""
    return str(item)


def _join(values: Any, convert=str) -> str:
    if not values:
        return ""
    if isinstance(values, list):
        return clean_text(LIST_SEPARATOR.join(convert(v) for v in values if v is not None))
    return clean_text(values)


def _number_or_blank(value: Any) -> Any:
    return value if value not in (None, "", 0) else ""


def columns_for(records: list[dict[str, Any]]) -> list[str]:
    """Output columns; category columns only when records carry a category."""
    if records and records[0].get("category"):
        return BASE_COLUMNS[:4] + CATEGORY_COLUMNS + BASE_COLUMNS[4:]
    return list(BASE_COLUMNS)


def to_row(record: dict[str, Any], with_category: bool) -> dict[str, Any]:
    """Map one catalog record onto the CSV columns."""
    row: dict[str, Any] = {
        "ID": clean_text(record.get("_id")),
        "Title": clean_text(record.get("title")),
        "Vendor": clean_text(_nested_title(record.get("vendor"), "title")),
        "Section": clean_text(
            _nested_title(record.get("section"), "productCategoryName")
        ),
        "Min Price": _number_or_blank(record.get("minPrice")),
        "Max Price": _number_or_blank(record.get("maxPrice")),
        "Offers": _number_or_blank(record.get("offerCount")),
        "URL": clean_text(record.get("url")),
        "Images": _join(record.get("imageLinks"), _image_link),
        "Specifications": _join(record.get("techShortSpecificationsList")),
    }
    if with_category:
        row["Category"] = clean_text(record.get("category"))
        row["Category URL"] = clean_text(record.get("categoryUrl"))
    return row


@dataclass
class CSVExporter:
    """Writes records to a BOM-prefixed, fully quoted CSV file.

    Text cells are quoted with embedded quotes doubled; numeric cells are
    left bare. The file name follows the same rotation rule as the JSON
    writer.
    """

    max_bytes: int = DEFAULT_MAX_FILE_SIZE_MB * 1024 * 1024

    def to_frame(self, records: list[dict[str, Any]]) -> pd.DataFrame:
        columns = columns_for(records)
        with_category = "Category" in columns
        rows = [to_row(record, with_category) for record in records]
        return pd.DataFrame(rows, columns=columns, dtype=object)

    def write(self, records: list[dict[str, Any]], base_path: Path) -> SaveResult:
        """Write records to the active CSV file of the family."""
        target = OutputFileSequence(base_path, self.max_bytes).current_or_next()
        target.path.parent.mkdir(parents=True, exist_ok=True)

        df = self.to_frame(records)
        df.to_csv(
            target.path,
            index=False,
            encoding="utf-8-sig",
            quoting=csv.QUOTE_NONNUMERIC,
            lineterminator="\n",
        )

        logger.info(f"Saved {len(records)} records to {target.path}")
        return SaveResult(saved=len(records), path=target.path)
