"""Pytest fixtures for catalog pipeline tests."""

import sys
from pathlib import Path

import pytest

# Add catalog-pipeline to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "catalog-pipeline"))

from config.settings import Settings, get_settings
from core.types import Category, CategoryContext, SessionCredentials

from .fixtures.catalog_responses import CATEGORY_URL


@pytest.fixture(autouse=True)
def _fresh_settings_cache():
    """Drop cached settings so each test reads its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def category() -> Category:
    """Smartphone category."""
    return Category(url=CATEGORY_URL, section_id=386)


@pytest.fixture
def credentials() -> SessionCredentials:
    """Complete credential pair."""
    return SessionCredentials(token="test-token", request_id="test-request-id")


@pytest.fixture
def context(category, credentials) -> CategoryContext:
    """Fresh category context with credentials already acquired."""
    return CategoryContext(category=category, credentials=credentials)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated from the environment and writing under tmp_path."""
    return Settings(
        _env_file=None,
        output_dir=tmp_path / "output",
        tokens_file=tmp_path / "tokens.json",
        categories_file=tmp_path / "categories.txt",
        default_x_token="default-token",
        default_x_request_id="default-request-id",
        category_pause=2.0,
        batch_size=2,
    )


@pytest.fixture
def recorded_sleeps() -> list[float]:
    """Delays passed to the injected sleep."""
    return []


@pytest.fixture
def fake_sleep(recorded_sleeps):
    """Sleep replacement that only records the requested delay."""

    async def _sleep(delay: float) -> None:
        recorded_sleeps.append(delay)

    return _sleep
