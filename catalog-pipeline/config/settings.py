"""Application settings using Pydantic. No side effects at import time."""

from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    API_URL,
    BASE_BATCH_DELAY,
    CATEGORY_PAUSE,
    CSV_DIR_NAME,
    DEFAULT_BATCH_SIZE,
    DEFAULT_CATEGORIES_FILE,
    DEFAULT_CITY_ID,
    DEFAULT_FILE_PREFIX,
    DEFAULT_ITEMS_PER_PAGE,
    DEFAULT_LOCALE,
    DEFAULT_MAX_FILE_SIZE_MB,
    DEFAULT_PAGE_RETRY_ATTEMPTS,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_TOKENS_FILE,
    JSON_DIR_NAME,
    OUTPUT_DIR,
    SAVE_FORMATS,
    SESSION_PROBE_TIMEOUT,
)


class Settings(BaseSettings):
    """Application settings with validation.

    Settings are loaded from environment variables and .env file.
    No side effects at class definition time - .env is loaded only when
    Settings() is instantiated.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars
    )

    # === Catalog API ===
    api_url: str = API_URL
    city_id: int = DEFAULT_CITY_ID
    locale: str = DEFAULT_LOCALE

    # === Pagination / pacing ===
    items_per_page: Annotated[int, Field(gt=0)] = DEFAULT_ITEMS_PER_PAGE
    batch_size: Annotated[int, Field(gt=0)] = DEFAULT_BATCH_SIZE
    base_delay: Annotated[float, Field(ge=0)] = BASE_BATCH_DELAY
    request_timeout: Annotated[float, Field(gt=0)] = DEFAULT_REQUEST_TIMEOUT
    session_timeout: Annotated[float, Field(gt=0)] = SESSION_PROBE_TIMEOUT
    category_pause: Annotated[float, Field(ge=0)] = CATEGORY_PAUSE
    retry_failed_pages: bool = Field(
        default=False, description="Re-fetch retryable failed pages within a batch"
    )
    page_retry_attempts: Annotated[int, Field(ge=0)] = DEFAULT_PAGE_RETRY_ATTEMPTS

    # === Credentials ===
    auto_session: bool = Field(
        default=True, description="Probe fresh credentials for every category"
    )
    default_x_token: str | None = None
    default_x_request_id: str | None = None
    tokens_file: Path = DEFAULT_TOKENS_FILE

    # === Output ===
    output_dir: Path = OUTPUT_DIR
    file_prefix: str = DEFAULT_FILE_PREFIX
    max_file_size_mb: Annotated[float, Field(gt=0)] = DEFAULT_MAX_FILE_SIZE_MB
    save_formats: str = "both"
    combined_output: bool = True
    progressive_save: bool = True

    # === Inputs ===
    categories_file: Path = DEFAULT_CATEGORIES_FILE

    @field_validator("save_formats", mode="before")
    @classmethod
    def _validate_save_formats(cls, value: object) -> str:
        normalized = str(value).strip().lower()
        if normalized not in SAVE_FORMATS:
            raise ValueError(
                f"save_formats must be one of {', '.join(SAVE_FORMATS)}, got {value!r}"
            )
        return normalized

    @property
    def json_dir(self) -> Path:
        """Directory for JSON outputs."""
        return self.output_dir / JSON_DIR_NAME

    @property
    def csv_dir(self) -> Path:
        """Directory for CSV outputs."""
        return self.output_dir / CSV_DIR_NAME

    @property
    def max_file_size_bytes(self) -> int:
        return int(self.max_file_size_mb * 1024 * 1024)

    @property
    def save_json(self) -> bool:
        return self.save_formats in ("json", "both")

    @property
    def save_csv(self) -> bool:
        return self.save_formats in ("csv", "both")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    This is the recommended way to access settings to avoid
    repeated .env file parsing.
    """
    return Settings()
